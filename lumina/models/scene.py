"""Saved scene models for list views and render history."""

from dataclasses import dataclass, field

from lumina.models.studio import StudioState


@dataclass
class SavedScene:
    """Named, timestamped snapshot of a full studio state."""
    id: str = ""
    name: str = ""
    state: StudioState = field(default_factory=StudioState)
    created_at: str = ""


@dataclass
class RenderRecord:
    """Finished render entry."""
    id: str = ""
    scene_id: str | None = None
    status: str = ""
    prompt: str = ""
    output_url: str | None = None
    error: str | None = None
    attempts: int = 0
    created_at: str = ""
