"""Render job models — lifecycle record for one external render request."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import uuid

from lumina.models.descriptor import DerivedDescriptor


class RenderStatus(Enum):
    IDLE = "idle"
    SUBMITTED = "submitted"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    @property
    def is_active(self) -> bool:
        return self in (RenderStatus.SUBMITTED, RenderStatus.POLLING)


_TERMINAL = frozenset({
    RenderStatus.SUCCEEDED,
    RenderStatus.FAILED,
    RenderStatus.CANCELED,
    RenderStatus.TIMED_OUT,
})


@dataclass
class RenderJob:
    """Job handle: identity plus live status of one render request.

    Attributes:
        id: Local job identifier.
        status: Current lifecycle state.
        descriptor: Descriptor the job was submitted with.
        attempts: Number of status polls issued so far.
        prediction_id: Identifier assigned by the upstream service.
        poll_url: Status URL returned by the creation call.
        output_url: Image reference on success.
        error: Human-readable failure message.
    """
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: RenderStatus = RenderStatus.IDLE
    descriptor: Optional[DerivedDescriptor] = None
    attempts: int = 0
    prediction_id: str = ""
    poll_url: str = ""
    cancel_url: str = ""
    upstream_status: str = ""
    output_url: Optional[str] = None
    error: Optional[str] = None
    created_at: str = ""
    finished_at: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_active(self) -> bool:
        return self.status.is_active
