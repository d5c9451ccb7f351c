"""FastAPI mock of the car-buyer REST API, backed by MockStore (all state in memory)."""

from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from dealdesk.mock_api.store import MockApiError, MockStore, _UserRecord, seed_demo_data
from dealdesk.models import (
    AssignInboxMessageRequest,
    ConsolidateRequest,
    CreateThreadRequest,
    Credentials,
    PreferencesRequest,
    RenameThreadRequest,
    SmsReplyRequest,
)
from dealdesk.utils.logger import get_logger

logger = get_logger("dealdesk.mock_api.server")

API_PREFIX = "/api/v1"

router = APIRouter(prefix=API_PREFIX)


def _store(request: Request) -> MockStore:
    return request.app.state.store


async def current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> _UserRecord:
    return _store(request).authenticate(authorization)


def _auth_payload(user, token: str) -> dict[str, Any]:
    return {"user": user.to_wire(), "token": token}


# --- auth ---


@router.post("/auth/register", status_code=201)
async def register(body: Credentials, request: Request) -> dict[str, Any]:
    user, token = _store(request).register(body.email, body.password)
    return _auth_payload(user, token)


@router.post("/auth/login")
async def login(body: Credentials, request: Request) -> dict[str, Any]:
    user, token = _store(request).login(body.email, body.password)
    return _auth_payload(user, token)


@router.get("/auth/me")
async def me(user: _UserRecord = Depends(current_user)) -> dict[str, Any]:
    return user.to_user().to_wire()


@router.post("/auth/logout", status_code=204)
async def logout(
    request: Request,
    user: _UserRecord = Depends(current_user),
    authorization: str | None = Header(default=None),
) -> Response:
    _store(request).logout(authorization)
    logger.info("mock_api.logout", user_id=user.id)
    return Response(status_code=204)


# --- preferences ---


@router.get("/preferences")
async def get_preferences(request: Request, user: _UserRecord = Depends(current_user)) -> dict[str, Any]:
    return _store(request).get_preferences(user).model_dump(mode="json")


@router.post("/preferences", status_code=201)
async def create_preferences(
    body: PreferencesRequest,
    request: Request,
    user: _UserRecord = Depends(current_user),
) -> dict[str, Any]:
    prefs = _store(request).create_preferences(user, body.year, body.make, body.model)
    return prefs.model_dump(mode="json")


# --- threads ---


@router.get("/threads")
async def list_threads(request: Request, user: _UserRecord = Depends(current_user)) -> dict[str, Any]:
    return {"threads": [t.to_wire() for t in _store(request).list_threads(user)]}


@router.post("/threads", status_code=201)
async def create_thread(
    body: CreateThreadRequest,
    request: Request,
    user: _UserRecord = Depends(current_user),
) -> dict[str, Any]:
    return _store(request).create_thread(user, body.seller_name, body.seller_type).to_wire()


@router.post("/threads/consolidate")
async def consolidate_threads(
    body: ConsolidateRequest,
    request: Request,
    user: _UserRecord = Depends(current_user),
) -> dict[str, Any]:
    thread, superseded = _store(request).consolidate(user, body.thread_ids)
    payload = thread.to_wire()
    payload["supersededThreadIds"] = superseded
    return payload


@router.get("/threads/{thread_id}")
async def get_thread(thread_id: str, request: Request, user: _UserRecord = Depends(current_user)) -> dict[str, Any]:
    return _store(request).get_thread(user, thread_id).to_wire()


@router.put("/threads/{thread_id}")
async def rename_thread(
    thread_id: str,
    body: RenameThreadRequest,
    request: Request,
    user: _UserRecord = Depends(current_user),
) -> dict[str, Any]:
    return _store(request).rename_thread(user, thread_id, body.seller_name).to_wire()


@router.delete("/threads/{thread_id}", status_code=204)
async def archive_thread(thread_id: str, request: Request, user: _UserRecord = Depends(current_user)) -> Response:
    _store(request).archive_thread(user, thread_id)
    return Response(status_code=204)


@router.post("/threads/{thread_id}/read", status_code=204)
async def mark_thread_read(thread_id: str, request: Request, user: _UserRecord = Depends(current_user)) -> Response:
    _store(request).mark_thread_read(user, thread_id)
    return Response(status_code=204)


@router.get("/threads/{thread_id}/messages")
async def list_thread_messages(
    thread_id: str,
    request: Request,
    user: _UserRecord = Depends(current_user),
) -> dict[str, Any]:
    messages = _store(request).list_thread_messages(user, thread_id)
    return {"messages": [m.to_wire() for m in messages]}


# --- inbox ---


@router.get("/inbox/messages")
async def list_inbox(request: Request, user: _UserRecord = Depends(current_user)) -> dict[str, Any]:
    return {"messages": [m.to_wire() for m in _store(request).list_inbox(user)]}


@router.post("/inbox/messages/{inbox_message_id}/assign")
async def assign_inbox_message(
    inbox_message_id: str,
    body: AssignInboxMessageRequest,
    request: Request,
    user: _UserRecord = Depends(current_user),
) -> dict[str, Any]:
    message = _store(request).assign_inbox_message(user, inbox_message_id, body.thread_id)
    return message.to_wire()


# --- offers ---


@router.get("/offers")
async def list_offers(request: Request, user: _UserRecord = Depends(current_user)) -> dict[str, Any]:
    return {"offers": [o.to_wire() for o in _store(request).list_offers(user)]}


# --- gmail ---


@router.get("/gmail/status")
async def gmail_status(request: Request, user: _UserRecord = Depends(current_user)) -> dict[str, Any]:
    return _store(request).gmail_status(user).to_wire()


@router.get("/gmail/auth-url")
async def gmail_auth_url(request: Request, user: _UserRecord = Depends(current_user)) -> dict[str, str]:
    return {"authUrl": _store(request).gmail_auth_url(user)}


@router.post("/gmail/disconnect")
async def gmail_disconnect(request: Request, user: _UserRecord = Depends(current_user)) -> dict[str, str]:
    _store(request).gmail_disconnect(user)
    return {"status": "disconnected"}


# --- sms ---


@router.post("/messages/{message_id}/sms-reply")
async def sms_reply(
    message_id: str,
    body: SmsReplyRequest,
    request: Request,
    user: _UserRecord = Depends(current_user),
) -> dict[str, Any]:
    message = _store(request).send_sms_reply(user, message_id, body.content)
    logger.info("mock_api.sms_reply", user_id=user.id, thread_id=message.thread_id)
    return message.to_wire()


@router.get("/sms/phone-number")
async def sms_phone_number(user: _UserRecord = Depends(current_user)) -> dict[str, Any]:
    if not user.phone_number:
        return {}
    return {"phoneNumber": user.phone_number}


def create_app(store: MockStore | None = None, seed: bool = False) -> FastAPI:
    """Create the mock API app. seed=True adds the demo account (see seed_demo_data)."""
    app = FastAPI(title="Dealdesk Mock API", version="0.1.0")
    app.state.store = store if store is not None else MockStore()
    if seed:
        seed_demo_data(app.state.store)

    @app.exception_handler(MockApiError)
    async def mock_api_error_handler(request: Request, exc: MockApiError) -> JSONResponse:
        logger.info(
            "mock_api.error",
            method=request.method,
            path=request.url.path,
            status=exc.status_code,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = [".".join(str(part) for part in err.get("loc", ())[1:]) for err in exc.errors()]
        fields = [f for f in fields if f]
        message = f"invalid request body: {', '.join(fields)}" if fields else "invalid request body"
        return JSONResponse(status_code=400, content={"error": message})

    app.include_router(router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
