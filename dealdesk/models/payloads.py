"""Request bodies sent by the client (and parsed by the mock API server)."""

from pydantic import Field

from dealdesk.models.base import WireModel
from dealdesk.models.thread import SellerType


class Credentials(WireModel):
    email: str
    password: str


class PreferencesRequest(WireModel):
    year: int
    make: str
    model: str


class CreateThreadRequest(WireModel):
    seller_name: str
    seller_type: SellerType = SellerType.DEALERSHIP


class RenameThreadRequest(WireModel):
    seller_name: str


class ConsolidateRequest(WireModel):
    thread_ids: list[str] = Field(default_factory=list)


class AssignInboxMessageRequest(WireModel):
    thread_id: str


class SmsReplyRequest(WireModel):
    content: str
