"""Routes revision commands to the storage engine and broadcasts the results."""
import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from api.connections import ConnectionManager
from schemas.commands import (
    COMMAND_NAME,
    CloseFileCommand,
    ConfirmSaveEnvelope,
    GetRealFileContentsCommand,
    GetRevisionHistoryCommand,
    MoveRevisionCommand,
    RealFileContentsEnvelope,
    RemoveRevisionCommand,
    RevisionCommand,
    RevisionHistoryBody,
    RevisionHistoryEnvelope,
    SaveRevisionCommand,
    revision_command_adapter,
)
from services.revision_engine import RevisionEngine

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """
    Handles inbound revision commands for connected users.

    Invalid commands and failed operations are logged and produce no response.
    Save confirmations go to every connected client; all other responses go only
    to the requesting user.
    """

    def __init__(self, engine: RevisionEngine, connections: ConnectionManager) -> None:
        self.engine = engine
        self.connections = connections

    @staticmethod
    def decode(message: dict[str, Any]) -> RevisionCommand | None:
        """
        Decode a raw message into a command variant.

        Returns:
            The command, or None if the message isn't a revisions command or is invalid.
        """
        if message.get("command") != COMMAND_NAME:
            return None
        try:
            return revision_command_adapter.validate_python(message)
        except ValidationError as e:
            logger.error(
                "Invalid revisions command %r: %s",
                message.get("subCommand"),
                e.errors(include_url=False),
            )
            return None

    async def handle(self, user_id: str, message: dict[str, Any]) -> bool:
        """
        Decode and execute one message.

        Returns:
            True if the message was a revisions command (even if it was rejected),
            False if it was meant for another handler.
        """
        if message.get("command") != COMMAND_NAME:
            return False
        command = self.decode(message)
        if command is not None:
            await self.dispatch(user_id, command)
        return True

    def spawn(self, user_id: str, message: dict[str, Any]) -> asyncio.Task[bool]:
        """
        Handle one message in its own task.

        Commands from one connection run independently: reads, moves, and removals
        don't wait for that connection's earlier saves to leave the save queue.
        The caller must keep a reference to the task until it finishes.
        """
        return asyncio.create_task(
            self.handle(user_id, message),
            name=f"revisions-command-{user_id}",
        )

    async def dispatch(self, user_id: str, command: RevisionCommand) -> None:
        """Execute a decoded command."""
        match command:
            case SaveRevisionCommand():
                await self._save_revision(user_id, command)
            case GetRevisionHistoryCommand():
                await self._get_revision_history(user_id, command)
            case GetRealFileContentsCommand():
                await self._get_real_file_contents(user_id, command)
            case CloseFileCommand():
                pass
            case RemoveRevisionCommand():
                await self.engine.remove_revisions(command.path, command.is_folder)
            case MoveRevisionCommand():
                await self.engine.move_revisions(command.path, command.new_path, command.is_folder)

    async def _save_revision(self, user_id: str, command: SaveRevisionCommand) -> None:
        try:
            info = await self.engine.save_revision(command.path, command.revision)
        except Exception:
            logger.exception("Failed to save revision for %s", command.path)
            return

        await self.connections.broadcast(
            ConfirmSaveEnvelope(path=command.path, ts=info.ts).to_message(),
        )
        if not command.force_revision_list_response:
            return

        try:
            revisions = await self.engine.load_all(command.path)
        except Exception:
            logger.exception("Failed to load revisions for %s", command.path)
            return
        await self._send_revisions(user_id, revisions, path=command.path)

    async def _get_revision_history(
        self, user_id: str, command: GetRevisionHistoryCommand,
    ) -> None:
        try:
            revisions = await self.engine.get_revisions(command.path)
        except Exception:
            logger.exception(
                "There was a problem retrieving the revisions for the file %s", command.path,
            )
            return
        await self._send_revisions(
            user_id,
            revisions,
            path=command.path,
            id=command.id,
            next_action=command.next_action,
        )

    async def _get_real_file_contents(
        self, user_id: str, command: GetRealFileContentsCommand,
    ) -> None:
        contents: str | None = None
        try:
            contents = await self.engine.read_file_contents(command.path)
        except (OSError, UnicodeDecodeError):
            # The client still gets a response, without contents
            logger.exception("Failed to read %s", command.path)
        envelope = RealFileContentsEnvelope(
            path=command.path,
            next_action=command.next_action,
            contents=contents,
        )
        await self.connections.send_to_user(user_id, envelope.to_message())

    async def _send_revisions(
        self, user_id: str, revisions: dict, path: str, **options: Any,
    ) -> None:
        envelope = RevisionHistoryEnvelope(
            body=RevisionHistoryBody(revisions=revisions),
            path=path,
            **options,
        )
        await self.connections.send_to_user(user_id, envelope.to_message())
