"""Input validation for payloads crossing into the engine."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from healsim.models import LogType, ProcessStatus


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class ProcessUpdate(_Payload):
    """Partial update for a process. The pid itself is immutable."""

    name: str | None = Field(default=None, min_length=1)
    memory: float | None = Field(default=None, gt=0)
    cpu: float | None = Field(default=None, ge=0)
    heartbeat: float | None = Field(default=None, ge=0)
    status: ProcessStatus | None = None


class FileUpdate(_Payload):
    """Partial update for a file. Id and size are fixed at creation."""

    name: str | None = Field(default=None, min_length=1)
    path: str | None = Field(default=None, min_length=1)
    checksum: str | None = Field(default=None, min_length=1)
    corrupted: bool | None = None
    last_modified: float | None = Field(default=None, ge=0)


class LogCreate(_Payload):
    """Caller-supplied log entry; id and timestamp are assigned by the store."""

    type: LogType
    event: str = Field(min_length=1)
    description: str = ""
