"""Derived descriptor models — output of the spatial derivation engine.

Mirrors the structured prompt consumed by the image-generation service.
Instances are recomputed whenever their inputs change, never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PhotographicCharacteristics:
    camera_angle: str = ""
    lens_focal_length: str = ""
    depth_of_field: str = ""
    focus: str = ""


@dataclass(frozen=True)
class LightingDescriptor:
    direction: str = ""
    conditions: str = ""
    shadows: str = ""


@dataclass(frozen=True)
class AestheticsDescriptor:
    mood_atmosphere: str = ""
    color_scheme: str = ""
    composition: str = ""


@dataclass(frozen=True)
class SubjectAnnotation:
    """Apparent subject orientation and placement relative to the camera."""
    description: str = ""
    location: str = "Center"
    action_pose: str = ""
    appearance_details: str = ""


@dataclass(frozen=True)
class StructuredPrompt:
    short_description: str = ""
    style_medium: str = ""
    artistic_style: str = ""
    photographic_characteristics: PhotographicCharacteristics = field(
        default_factory=PhotographicCharacteristics,
    )
    lighting: LightingDescriptor = field(default_factory=LightingDescriptor)
    aesthetics: AestheticsDescriptor = field(default_factory=AestheticsDescriptor)
    objects: tuple[SubjectAnnotation, ...] = ()

    @property
    def primary_pose(self) -> str:
        return self.objects[0].action_pose if self.objects else ""


@dataclass(frozen=True)
class DerivedDescriptor:
    """Structured descriptor derived from one (effective) studio state.

    Attributes:
        prompt: Raw user prompt (may be empty).
        structured_prompt: Structured fields sent to the render service.
        view: Camera azimuth label ("Front View", "Left Side Profile", ...).
        composite_view: View label combined with the camera angle label.
    """
    prompt: str = ""
    structured_prompt: StructuredPrompt = field(default_factory=StructuredPrompt)
    view: str = ""
    composite_view: str = ""

    @property
    def lens(self) -> str:
        return self.structured_prompt.photographic_characteristics.lens_focal_length

    @property
    def lighting(self) -> LightingDescriptor:
        return self.structured_prompt.lighting
