"""Application configuration using pydantic-settings."""
from functools import lru_cache
from pathlib import Path, PurePosixPath

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Root of the workspace whose files are tracked
    workspace_dir: Path = Field(validation_alias="WORKSPACE_DIR")

    # Hidden folder (relative to the workspace) mirroring the workspace tree
    revisions_folder_name: str = Field(
        default=".revisions", validation_alias="REVISIONS_FOLDER_NAME",
    )
    # Extension appended to every revision log file
    revisions_file_suffix: str = Field(
        default="revlog", validation_alias="REVISIONS_FILE_SUFFIX",
    )
    # Permissions for directories created under the revisions folder
    revisions_dir_mode_str: str = Field(
        default="0755", validation_alias="REVISIONS_DIR_MODE",
    )

    # When a save creates a new log, also append the submitted revision after the seed.
    # Off by default: only the seed (empty -> live file content) is persisted.
    append_first_payload: bool = Field(
        default=False, validation_alias="REVISIONS_APPEND_FIRST_PAYLOAD",
    )

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ORIGINS",
    )

    @model_validator(mode="after")
    def validate_revisions_layout(self) -> "Settings":
        """
        Ensure the revisions folder and suffix can't escape or collide with the workspace.

        The folder name must be a single relative path segment, and the suffix must be
        a bare extension so that a log path is always `<file>.<suffix>`.
        """
        folder = self.revisions_folder_name
        if not folder or PurePosixPath(folder).is_absolute() or "/" in folder or "\\" in folder:
            raise ValueError(
                f"REVISIONS_FOLDER_NAME must be a single relative directory name, got '{folder}'",
            )
        if folder in {".", ".."}:
            raise ValueError(f"REVISIONS_FOLDER_NAME cannot be '{folder}'")

        suffix = self.revisions_file_suffix
        if not suffix or any(c in suffix for c in "./\\"):
            raise ValueError(
                f"REVISIONS_FILE_SUFFIX must be a bare extension without dots or "
                f"separators, got '{suffix}'",
            )

        # Fails with ValueError for anything that isn't an octal literal
        int(self.revisions_dir_mode_str, 8)
        return self

    @property
    def revisions_dir_mode(self) -> int:
        """Parse the octal directory mode string."""
        return int(self.revisions_dir_mode_str, 8)

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
