"""Revision endpoints: the command WebSocket and read-only history views."""
import asyncio
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect

from api.connections import ConnectionManager
from api.dependencies import get_connections, get_dispatcher, get_engine
from api.dispatcher import CommandDispatcher
from schemas.commands import RevisionHistoryBody
from schemas.revision import RevisionRecord
from schemas.validators import validate_logical_path
from services.exceptions import EmptyHistoryError, RevisionLogParseError
from services.revision_engine import RevisionEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/revisions", tags=["revisions"])


@router.websocket("/ws")
async def revisions_socket(
    websocket: WebSocket,
    user: str = Query(min_length=1),
    connections: ConnectionManager = Depends(get_connections),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
) -> None:
    """
    Per-user command channel.

    Each text frame is one JSON command; responses and broadcasts are sent back as
    JSON frames. Frames that aren't JSON objects are logged and skipped.
    """
    await websocket.accept()
    connections.connect(user, websocket)
    pending: set[asyncio.Task[bool]] = set()
    try:
        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except json.JSONDecodeError:
                logger.warning("Ignoring non-JSON frame from user %s", user)
                continue
            if not isinstance(message, dict):
                logger.warning("Ignoring non-object frame from user %s", user)
                continue
            task = dispatcher.spawn(user, message)
            pending.add(task)
            task.add_done_callback(pending.discard)
    except WebSocketDisconnect:
        pass
    finally:
        connections.disconnect(user, websocket)
        # Queued saves still complete and confirm to the remaining clients
        results = await asyncio.gather(*pending, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error("Command from user %s failed: %s", user, result)


def _checked_path(path: str) -> str:
    try:
        return validate_logical_path(path)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


async def _load(engine: RevisionEngine, path: str) -> dict[int, RevisionRecord]:
    try:
        return await engine.load_all(path)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail="No revisions for this file") from e
    except RevisionLogParseError as e:
        logger.error("Corrupted revision log: %s", e)
        raise HTTPException(status_code=500, detail="Revision log is corrupted") from e


@router.get("/history", response_model=RevisionHistoryBody)
async def get_history(
    path: str = Query(min_length=1),
    engine: RevisionEngine = Depends(get_engine),
) -> RevisionHistoryBody:
    """Get every stored revision of a file. Does not create a log."""
    revisions = await _load(engine, _checked_path(path))
    return RevisionHistoryBody(revisions=revisions)


@router.get("/content")
async def get_content(
    path: str = Query(min_length=1),
    ts: int | None = Query(default=None),
    engine: RevisionEngine = Depends(get_engine),
) -> dict:
    """
    Get a file's content as of a revision.

    If ts matches a stored revision exactly, content is rebuilt up to and including
    it; otherwise the latest content is returned.
    """
    revisions = await _load(engine, _checked_path(path))
    try:
        content = engine.reconstruct(revisions, ts)
    except EmptyHistoryError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {"path": path, "ts": ts if ts in revisions else max(revisions), "content": content}
