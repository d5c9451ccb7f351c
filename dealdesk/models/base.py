"""Shared pydantic configuration for API wire models (camelCase on the wire)."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Accepts both field names and camelCase aliases; ignores unknown server fields."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "ignore",
    }

    def to_wire(self) -> dict:
        """JSON-ready dict using the API's camelCase keys."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
