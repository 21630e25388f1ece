"""Studio state data models — the editable, versioned part of a scene.

A StudioState is one immutable snapshot: camera and light positions plus
the discrete lens/style controls. The subject is fixed at the origin.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable

from lumina.constants import DEFAULT_APERTURE


class SubjectType(Enum):
    PERSON = "person"
    CAR = "car"
    BUILDING = "building"
    PRODUCT = "product"
    FURNITURE = "furniture"


@dataclass(frozen=True)
class Position:
    """3D marker position in stage units.

    Attributes:
        x: Horizontal offset (negative = left of subject).
        y: Depth (positive = in front of subject).
        z: Height (0 = eye level).
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def moved(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> Position:
        return Position(self.x + dx, self.y + dy, self.z + dz)


@dataclass(frozen=True)
class PostProcessing:
    """Post-processing effect levels, each 0-100."""
    bloom: int = 0
    glare: int = 0
    distortion: int = 0


def normalize_filters(filters: Iterable[str]) -> tuple[str, ...]:
    """Drop duplicates while keeping first-seen order."""
    seen: dict[str, None] = {}
    for name in filters:
        seen.setdefault(name, None)
    return tuple(seen)


@dataclass(frozen=True, eq=False)
class StudioState:
    """Fully populated editable state (one history snapshot).

    ``filters`` keeps insertion order for display; equality treats it as
    a set.
    """
    camera: Position = field(default_factory=lambda: Position(0.0, 150.0, 0.0))
    light: Position = field(default_factory=lambda: Position(100.0, -100.0, 20.0))
    aperture: str = DEFAULT_APERTURE
    prompt: str = ""
    filters: tuple[str, ...] = ()
    post_processing: PostProcessing = field(default_factory=PostProcessing)
    subject_type: SubjectType = SubjectType.PERSON

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", normalize_filters(self.filters))
        object.__setattr__(self, "subject_type", SubjectType(self.subject_type))

    def _key(self) -> tuple:
        return (
            self.camera,
            self.light,
            self.aperture,
            self.prompt,
            frozenset(self.filters),
            self.post_processing,
            self.subject_type,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StudioState):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def merged(self, **changes) -> StudioState:
        """Return a new state with ``changes`` applied over this one."""
        if not changes:
            return self
        return replace(self, **changes)

    def has_filter(self, name: str) -> bool:
        return name in self.filters


INITIAL_STATE = StudioState()
