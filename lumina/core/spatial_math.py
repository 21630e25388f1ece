"""Spatial derivation engine — marker coordinates to structured descriptor.

Pure functions only. Every input, however far outside the stage, maps to
some label; nothing here raises.

Threshold contract: every comparison is strict and each chain is evaluated
top to bottom with the first match winning. An exact threshold value
therefore falls into the less extreme neighbour (lens: 60 → Wide-Angle,
100 → 35mm, 140 → 50mm, 180 → 50mm, 250 → Portrait).
"""

from __future__ import annotations

import math
import re
from typing import Iterable

from lumina.constants import (
    ANGLE_ELEVATED_MIN,
    ANGLE_HIGH_MIN,
    ANGLE_LOW_MAX,
    ANGLE_SLIGHTLY_LOW_MAX,
    COMPOSITION_THIRDS_OFFSET,
    DEFAULT_F_NUMBER,
    DOF_DEEP_MIN,
    DOF_SHALLOW_MAX,
    LENS_35MM_MAX,
    LENS_FISHEYE_MAX,
    LENS_PORTRAIT_MIN,
    LENS_TELEPHOTO_MIN,
    LENS_WIDE_MAX,
    LIGHT_DIFFUSE_MIN_DIST,
    LIGHT_HARSH_MAX_DIST,
    LIGHT_OVERHEAD_MIN_Z,
    LIGHT_UNDER_MAX_Z,
    POST_PROCESSING_THRESHOLD,
    VIEW_CENTER_HALF_WIDTH,
)
from lumina.models.descriptor import (
    AestheticsDescriptor,
    DerivedDescriptor,
    LightingDescriptor,
    PhotographicCharacteristics,
    StructuredPrompt,
    SubjectAnnotation,
)
from lumina.models.studio import PostProcessing, Position, StudioState, SubjectType

STYLE_MEDIUM = "Cinematic Photography"
BASE_ARTISTIC_STYLE = "Photorealistic / Editorial"
SHARP_FOCUS = "Sharp focus on subject"
NEUTRAL_MOOD = "Neutral, Clean, Professional"

# View labels
FRONT_VIEW = "Front View"
BACK_VIEW = "Back View"
LEFT_PROFILE = "Left Side Profile"
RIGHT_PROFILE = "Right Side Profile"

# Lighting direction labels
LIGHT_RIGHT = "Right Side Lighting (Key)"
LIGHT_FRONT = "Front/Butterfly Lighting"
LIGHT_LEFT = "Left Side Lighting (Fill)"
LIGHT_RIM = "Rim / Back Lighting"
LIGHT_OVERHEAD = "Overhead Top-Down Lighting"
LIGHT_UNDER = "Under/Horror Lighting"

_LENS_FILTER_PHRASES = {
    "Vignette": "Heavy Vignette",
    "Chromatic Aberration": "Chromatic Aberration",
}
_STYLE_FILTER_PHRASES = {
    "Film Grain": "ISO 3200, Analog Film Grain, Noise",
    "Cinematic Color Grading": "Color Graded, Teal and Orange LUT",
}

_POSE_BY_VIEW = {
    FRONT_VIEW: "Facing Camera",
    BACK_VIEW: "Back to Camera",
    LEFT_PROFILE: "Profile View (Left)",
    RIGHT_PROFILE: "Profile View (Right)",
}

_DESCRIPTION_BY_SUBJECT = {
    SubjectType.PERSON: "A portrait of a person",
    SubjectType.CAR: "A sleek modern sports car",
    SubjectType.BUILDING: "A modern architectural structure",
    SubjectType.PRODUCT: "A premium product on a studio set",
    SubjectType.FURNITURE: "A contemporary designer furniture piece",
}

_F_NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?)")


# =====================================================================
# Camera
# =====================================================================


def planar_distance(pos: Position) -> float:
    """Distance from the subject in the horizontal plane (height excluded)."""
    return math.hypot(pos.x, pos.y)


def lens_for_distance(distance: float) -> str:
    if distance < LENS_FISHEYE_MAX:
        return "18mm Fisheye"
    if distance < LENS_WIDE_MAX:
        return "24mm Wide-Angle"
    if distance < LENS_35MM_MAX:
        return "35mm"
    if distance > LENS_TELEPHOTO_MIN:
        return "200mm Telephoto"
    if distance > LENS_PORTRAIT_MIN:
        return "85mm Portrait"
    return "50mm"


def camera_angle(height: float) -> str:
    if height > ANGLE_HIGH_MIN:
        return "High Angle / Bird's Eye View"
    if height > ANGLE_ELEVATED_MIN:
        return "Slightly Elevated"
    if height < ANGLE_LOW_MAX:
        return "Low Angle / Hero View"
    if height < ANGLE_SLIGHTLY_LOW_MAX:
        return "Slightly Low Angle"
    return "Eye-level"


def view_label(pos: Position) -> str:
    """Azimuth label from horizontal offset and depth."""
    if abs(pos.x) <= VIEW_CENTER_HALF_WIDTH:
        return FRONT_VIEW if pos.y >= 0 else BACK_VIEW
    return LEFT_PROFILE if pos.x < 0 else RIGHT_PROFILE


def composition_label(pos: Position) -> str:
    if pos.x < -COMPOSITION_THIRDS_OFFSET:
        return "Rule of Thirds (Left)"
    if pos.x > COMPOSITION_THIRDS_OFFSET:
        return "Rule of Thirds (Right)"
    return "Center Framed"


def parse_f_number(aperture: str) -> float:
    """Extract the numeric stop from ``"f/2.8"``-style strings.

    Unparseable input yields the default stop.
    """
    match = _F_NUMBER_RE.search(aperture or "")
    if match is None:
        return DEFAULT_F_NUMBER
    value = float(match.group(1))
    if not math.isfinite(value) or value <= 0:
        return DEFAULT_F_NUMBER
    return value


def _format_f_number(value: float) -> str:
    return f"f/{value:g}"


def depth_of_field(aperture: str) -> str:
    f_number = parse_f_number(aperture)
    label = _format_f_number(f_number)
    if f_number <= DOF_SHALLOW_MAX:
        return f"{label}, Shallow Depth of Field, Bokeh Background"
    if f_number >= DOF_DEEP_MIN:
        return f"{label}, Deep Depth of Field, Sharp Background"
    return f"{label}, Standard Depth of Field"


def _optics(
    distance: float,
    filters: tuple[str, ...],
    post: PostProcessing,
) -> tuple[str, str]:
    """Lens and focus phrases with filter and post-processing modifiers."""
    lens_parts = [lens_for_distance(distance)]
    for name, phrase in _LENS_FILTER_PHRASES.items():
        if name in filters:
            lens_parts.append(phrase)

    focus_parts = ["Motion Blur, Kinetic Energy" if "Motion Blur" in filters else SHARP_FOCUS]

    if post.bloom > POST_PROCESSING_THRESHOLD:
        focus_parts.append("Soft Bloom, Dreamy Glow")
    if post.glare > POST_PROCESSING_THRESHOLD:
        focus_parts.append("Lens Flare, Specular Highlights")
    if post.distortion > POST_PROCESSING_THRESHOLD:
        lens_parts.append("Barrel Distortion, Lens Curvature")

    return ", ".join(lens_parts), ", ".join(focus_parts)


# =====================================================================
# Lighting
# =====================================================================


def light_azimuth_deg(pos: Position) -> float:
    # Rounded so diagonal placements land exactly on sector boundaries
    return round(math.degrees(math.atan2(pos.y, pos.x)), 9)


def light_sector(azimuth_deg: float) -> str:
    """Map azimuth to one of four 90° sectors; back sector is (-135, -45]."""
    if -45.0 < azimuth_deg <= 45.0:
        return LIGHT_RIGHT
    if 45.0 < azimuth_deg <= 135.0:
        return LIGHT_FRONT
    if -135.0 < azimuth_deg <= -45.0:
        return LIGHT_RIM
    return LIGHT_LEFT


def light_direction(pos: Position) -> str:
    """Sector label, replaced entirely by the height overrides."""
    if pos.z > LIGHT_OVERHEAD_MIN_Z:
        return LIGHT_OVERHEAD
    if pos.z < LIGHT_UNDER_MAX_Z:
        return LIGHT_UNDER
    return light_sector(light_azimuth_deg(pos))


def lighting(pos: Position) -> LightingDescriptor:
    direction = light_direction(pos)
    distance = planar_distance(pos)

    if distance < LIGHT_HARSH_MAX_DIST:
        conditions, shadows = "Harsh Flash / Spotlight", "Hard, Crisp Shadows"
    elif distance > LIGHT_DIFFUSE_MIN_DIST:
        conditions, shadows = "Large Softbox / Ambient Window", "Diffused, Soft Shadows"
    else:
        conditions = "Studio Strobe"
        shadows = "Deep Eye Socket Shadows" if direction == LIGHT_OVERHEAD else "Soft Shadows"

    # Direction-forced shadow character wins over distance for these two
    if direction == LIGHT_RIM:
        shadows = "Silhouette / High Contrast"
    elif direction == LIGHT_UNDER:
        shadows = "Unnatural Upward Shadows"

    return LightingDescriptor(direction=direction, conditions=conditions, shadows=shadows)


def color_scheme(direction: str) -> str:
    if direction == LIGHT_RIM:
        return "Dramatic / High Contrast"
    if direction == LIGHT_UNDER:
        return "Moody / Cool Tones"
    return "Natural / Balanced"


# =====================================================================
# Style & subject
# =====================================================================


def artistic_style(filters: tuple[str, ...]) -> str:
    parts = [BASE_ARTISTIC_STYLE]
    for name, phrase in _STYLE_FILTER_PHRASES.items():
        if name in filters:
            parts.append(phrase)
    return ", ".join(parts)


def mood(filters: tuple[str, ...]) -> str:
    if not filters:
        return NEUTRAL_MOOD
    return "Stylized: " + ", ".join(filters)


def subject_kind(subject: SubjectType | str) -> SubjectType:
    """Coerce a subject value; unknown names fall back to a person."""
    try:
        return SubjectType(subject)
    except ValueError:
        return SubjectType.PERSON


def default_description(subject: SubjectType | str) -> str:
    return _DESCRIPTION_BY_SUBJECT[subject_kind(subject)]


def subject_pose(view: str) -> str:
    return _POSE_BY_VIEW[view]


# =====================================================================
# Entry points
# =====================================================================


def derive(
    camera: Position,
    light: Position,
    prompt: str = "",
    aperture: str = "f/5.6",
    filters: Iterable[str] = (),
    post_processing: PostProcessing | None = None,
    subject_type: SubjectType | str = SubjectType.PERSON,
) -> DerivedDescriptor:
    """Derive the structured descriptor for one camera/light arrangement.

    Args:
        camera: Camera marker position.
        light: Light marker position.
        prompt: Free-text user prompt; empty falls back to a subject default.
        aperture: Aperture stop string, e.g. ``"f/2.8"``.
        filters: Active filter names (order kept for the mood label).
        post_processing: Bloom/glare/distortion levels.
        subject_type: Subject category.

    Returns:
        A new DerivedDescriptor. Identical inputs give equal results.
    """
    active = tuple(dict.fromkeys(filters))
    post = post_processing or PostProcessing()
    subject_type = subject_kind(subject_type)

    lens, focus = _optics(planar_distance(camera), active, post)
    angle = camera_angle(camera.z)
    view = view_label(camera)
    light_desc = lighting(light)

    text = (prompt or "").strip()
    description = text or default_description(subject_type)

    subject = SubjectAnnotation(
        description="Main Subject" if subject_type is SubjectType.PERSON else description,
        location="Center",
        action_pose=subject_pose(view),
        appearance_details="Detailed texture, high quality",
    )

    structured = StructuredPrompt(
        short_description=description,
        style_medium=STYLE_MEDIUM,
        artistic_style=artistic_style(active),
        photographic_characteristics=PhotographicCharacteristics(
            camera_angle=angle,
            lens_focal_length=lens,
            depth_of_field=depth_of_field(aperture),
            focus=focus,
        ),
        lighting=light_desc,
        aesthetics=AestheticsDescriptor(
            mood_atmosphere=mood(active),
            color_scheme=color_scheme(light_desc.direction),
            composition=composition_label(camera),
        ),
        objects=(subject,),
    )

    return DerivedDescriptor(
        prompt=prompt or "",
        structured_prompt=structured,
        view=view,
        composite_view=f"{view}, {angle}",
    )


def derive_from_state(state: StudioState) -> DerivedDescriptor:
    """Convenience wrapper over :func:`derive` for a full snapshot."""
    return derive(
        camera=state.camera,
        light=state.light,
        prompt=state.prompt,
        aperture=state.aperture,
        filters=state.filters,
        post_processing=state.post_processing,
        subject_type=state.subject_type,
    )
