"""
Pydantic schemas for the revisions command protocol.

Inbound messages look like `{"command": "revisions", "subCommand": "saveRevision", ...}`
and are decoded once into one variant per sub-command. Outbound envelopes are
serialized with camelCase keys and without unset optional fields.
"""
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from schemas.revision import RevisionRecord
from schemas.validators import validate_logical_path

COMMAND_NAME = "revisions"


class _CommandBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    command: Literal["revisions"] = COMMAND_NAME
    path: str

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Reject empty paths and paths escaping the workspace."""
        return validate_logical_path(v)


class SaveRevisionCommand(_CommandBase):
    """Persist a revision computed by the client."""

    sub_command: Literal["saveRevision"]
    revision: RevisionRecord
    force_revision_list_response: bool = False


class GetRevisionHistoryCommand(_CommandBase):
    """Request the full revision map of a file."""

    sub_command: Literal["getRevisionHistory"]
    id: int | str | None = None  # Echoed back so the client can match the response
    next_action: Any = None


class GetRealFileContentsCommand(_CommandBase):
    """Request the live content of a file."""

    sub_command: Literal["getRealFileContents"]
    next_action: Any = None


class CloseFileCommand(_CommandBase):
    """Notification that a client closed a file; no effect on storage."""

    sub_command: Literal["closeFile"]


class RemoveRevisionCommand(_CommandBase):
    """Delete the history of a deleted file or folder."""

    sub_command: Literal["removeRevision"]
    is_folder: bool = False


class MoveRevisionCommand(_CommandBase):
    """Move the history of a renamed or moved file or folder."""

    sub_command: Literal["moveRevision"]
    new_path: str
    is_folder: bool = False

    @field_validator("new_path")
    @classmethod
    def validate_new_path(cls, v: str) -> str:
        """Reject empty paths and paths escaping the workspace."""
        return validate_logical_path(v)


RevisionCommand = Annotated[
    SaveRevisionCommand
    | GetRevisionHistoryCommand
    | GetRealFileContentsCommand
    | CloseFileCommand
    | RemoveRevisionCommand
    | MoveRevisionCommand,
    Field(discriminator="sub_command"),
]

revision_command_adapter: TypeAdapter[RevisionCommand] = TypeAdapter(RevisionCommand)


class _Envelope(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: Literal["revision"] = "revision"

    def to_message(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict for broadcasting."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConfirmSaveEnvelope(_Envelope):
    """Tells every client that a revision was persisted."""

    subtype: Literal["confirmSave"] = "confirmSave"
    path: str
    ts: int


class RevisionHistoryBody(BaseModel):
    """Payload of a revision history envelope."""

    revisions: dict[int, RevisionRecord]


class RevisionHistoryEnvelope(_Envelope):
    """Carries the full revision map of a file."""

    subtype: Literal["getRevisionHistory"] = "getRevisionHistory"
    body: RevisionHistoryBody
    path: str
    id: int | str | None = None
    next_action: Any = None

    def to_message(self) -> dict[str, Any]:
        """Serialize like other envelopes, but always include id (null if unset)."""
        message = super().to_message()
        message["id"] = self.id
        return message


class RealFileContentsEnvelope(_Envelope):
    """Carries the live content of a file; contents is omitted if it couldn't be read."""

    subtype: Literal["getRealFileContents"] = "getRealFileContents"
    path: str
    next_action: Any = None
    contents: str | None = None
