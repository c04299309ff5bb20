"""HTTP and WebSocket route definitions for the account lifecycle service."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future
from typing import Any

import jwt
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from ..domain.account import AccountKey
from ..domain.errors import AuthorizationError, LifecycleError, StorageError
from ..domain.service import AccountDeletionService
from ..security.tokens import account_key_from_token
from ..storage.registry import AccountRegistry
from ..storage.sessions import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")

STATUS_OK = "ok"
STATUS_ILLEGAL_COMMAND = "illegal_command"
STATUS_NOT_ALLOWED = "not_allowed"
STATUS_SERVER_ERROR = "server_error"


class DeleteAccountRequest(BaseModel):
    """Deletion command: a request id plus the client-side password hash."""

    id: int = Field(..., ge=0)
    body: str | None = None


class CommandResponse(BaseModel):
    """Acknowledgment or rejection keyed by the request id."""

    id: int
    status: str
    detail: str | None = None


class WebSocketConnection:
    """Adapts a live WebSocket to the synchronous ``close()`` used by sessions."""

    def __init__(self, websocket: WebSocket, loop: asyncio.AbstractEventLoop) -> None:
        self._websocket = websocket
        self._loop = loop

    def close(self) -> None:
        future = asyncio.run_coroutine_threadsafe(
            self._websocket.close(code=status.WS_1000_NORMAL_CLOSURE), self._loop
        )
        future.add_done_callback(_log_close_failure)


def _log_close_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.warning("failed to close websocket connection: %s", exc)


def get_service(request: Request) -> AccountDeletionService:
    """Resolve the `AccountDeletionService` stored on the FastAPI application state."""
    service: AccountDeletionService = request.app.state.deletion_service
    return service


def get_caller(authorization: str | None = Header(default=None)) -> AccountKey:
    """Resolve the authenticated caller from an ``Authorization: Bearer`` header."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing bearer token")
    try:
        return account_key_from_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token") from exc


async def read_command(request: Request) -> Any:
    """Read the raw JSON command body, or ``None`` when it is not JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


@router.post("/account/delete", response_model=CommandResponse)
def delete_account(
    command: Any = Depends(read_command),
    caller: AccountKey = Depends(get_caller),
    service: AccountDeletionService = Depends(get_service),
) -> JSONResponse:
    """Delete the caller's account after verifying the supplied password hash.

    On success the acknowledgment carries ``Connection: close`` so the client
    drops its connection; every live session of the account is closed too.
    """
    try:
        payload = DeleteAccountRequest.model_validate(command)
    except ValidationError:
        request_id = _command_id(command)
        logger.warning("malformed delete request %s", request_id)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=CommandResponse(
                id=request_id, status=STATUS_ILLEGAL_COMMAND, detail="malformed request"
            ).model_dump(),
        )

    try:
        service.delete_account(caller, payload.body)
    except LifecycleError as exc:
        status_code, body_status = _command_error(exc)
        return JSONResponse(
            status_code=status_code,
            content=CommandResponse(id=payload.id, status=body_status, detail=str(exc)).model_dump(),
        )
    except Exception:
        logger.exception("unexpected failure handling delete request %s", payload.id)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=CommandResponse(id=payload.id, status=STATUS_ILLEGAL_COMMAND, detail="internal failure").model_dump(),
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=CommandResponse(id=payload.id, status=STATUS_OK).model_dump(),
        headers={"Connection": "close"},
    )


@router.websocket("/ws")
async def live_session(websocket: WebSocket, token: str = Query(default="")) -> None:
    """Hold a live session connection for the authenticated account."""
    try:
        key = account_key_from_token(token)
    except jwt.PyJWTError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    registry: AccountRegistry = websocket.app.state.registry
    sessions: SessionRegistry = websocket.app.state.sessions
    if key not in registry:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    connection = WebSocketConnection(websocket, asyncio.get_running_loop())
    session = sessions.get_or_create(key)
    session.add(connection)
    await websocket.send_json({"status": "connected"})
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        session.discard(connection)


def _command_error(exc: LifecycleError) -> tuple[int, str]:
    if isinstance(exc, AuthorizationError):
        if "missing" in str(exc).lower():
            return status.HTTP_400_BAD_REQUEST, STATUS_ILLEGAL_COMMAND
        return status.HTTP_403_FORBIDDEN, STATUS_NOT_ALLOWED
    if isinstance(exc, StorageError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, STATUS_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST, STATUS_ILLEGAL_COMMAND


def _command_id(command: Any) -> int:
    request_id = command.get("id") if isinstance(command, dict) else None
    if isinstance(request_id, int) and not isinstance(request_id, bool) and request_id >= 0:
        return request_id
    return -1
