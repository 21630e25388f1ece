"""Serialization utilities — dataclass ↔ JSON-safe dict conversion.

Handles Enum fields, nested frozen dataclasses and tuples. Used by the
scene repository, the render payload builder and the CLI output.
"""

from __future__ import annotations

import dataclasses
import json
from enum import Enum
from typing import Any

from lumina.constants import (
    RENDER_ASPECT_RATIO,
    RENDER_NUM_OUTPUTS,
    STATE_SCHEMA_VERSION,
)
from lumina.models.descriptor import DerivedDescriptor
from lumina.models.studio import PostProcessing, Position, StudioState, SubjectType


# =====================================================================
# Generic helpers
# =====================================================================


def _serialize_value(val: Any) -> Any:
    """Convert a value to a JSON-safe type."""
    if val is None:
        return None
    if isinstance(val, Enum):
        return val.value
    if dataclasses.is_dataclass(val) and not isinstance(val, type):
        return _dataclass_to_dict(val)
    if isinstance(val, (list, tuple)):
        return [_serialize_value(v) for v in val]
    if isinstance(val, (int, float, str, bool)):
        return val
    return str(val)


def _dataclass_to_dict(obj: Any) -> dict:
    """Recursively convert a dataclass to a JSON-safe dict."""
    result = {}
    for f in dataclasses.fields(obj):
        val = getattr(obj, f.name)
        result[f.name] = _serialize_value(val)
    return result


def _float(data: dict, key: str, default: float) -> float:
    try:
        return float(data.get(key, default))
    except (TypeError, ValueError):
        return default


def _int(data: dict, key: str, default: int) -> int:
    try:
        return int(data.get(key, default))
    except (TypeError, ValueError):
        return default


# =====================================================================
# Studio state
# =====================================================================


def state_to_dict(state: StudioState) -> dict:
    """Serialize StudioState with the schema version embedded."""
    d = _dataclass_to_dict(state)
    d["schema_version"] = STATE_SCHEMA_VERSION
    return d


def _dict_to_position(data: dict | None, default: Position) -> Position:
    if not isinstance(data, dict):
        return default
    return Position(
        x=_float(data, "x", default.x),
        y=_float(data, "y", default.y),
        z=_float(data, "z", default.z),
    )


def _dict_to_post_processing(data: dict | None) -> PostProcessing:
    if not isinstance(data, dict):
        return PostProcessing()
    return PostProcessing(
        bloom=_int(data, "bloom", 0),
        glare=_int(data, "glare", 0),
        distortion=_int(data, "distortion", 0),
    )


def dict_to_state(data: dict) -> StudioState:
    """Deserialize a dict into a fully populated StudioState.

    Missing fields take their defaults; an unknown subject type falls
    back to a person. Accepts the camelCase keys written by older scene
    exports (``postProcessing``, ``subjectType``).
    """
    data = dict(data)  # shallow copy
    data.pop("schema_version", None)
    defaults = StudioState()

    post = data.get("post_processing", data.get("postProcessing"))
    subject_raw = data.get("subject_type", data.get("subjectType", defaults.subject_type.value))
    try:
        subject = SubjectType(subject_raw)
    except ValueError:
        subject = SubjectType.PERSON

    filters = data.get("filters") or []
    if not isinstance(filters, (list, tuple)):
        filters = []

    return StudioState(
        camera=_dict_to_position(data.get("camera"), defaults.camera),
        light=_dict_to_position(data.get("light"), defaults.light),
        aperture=str(data.get("aperture") or defaults.aperture),
        prompt=str(data.get("prompt") or ""),
        filters=tuple(str(f) for f in filters),
        post_processing=_dict_to_post_processing(post),
        subject_type=subject,
    )


# =====================================================================
# Descriptor / render payload
# =====================================================================


def descriptor_to_dict(descriptor: DerivedDescriptor) -> dict:
    """Wire-shaped dict: ``{"prompt": ..., "structured_prompt": {...}}``."""
    return {
        "prompt": descriptor.prompt,
        "structured_prompt": _dataclass_to_dict(descriptor.structured_prompt),
    }


def build_rich_prompt(descriptor: DerivedDescriptor) -> str:
    """Flatten the structured descriptor into one natural-language prompt."""
    sp = descriptor.structured_prompt
    pc = sp.photographic_characteristics
    pose = sp.primary_pose or "Natural"
    parts = [
        f"{sp.short_description}.",
        f"Style: {sp.style_medium}, {sp.artistic_style}.",
        f"Camera: {pc.lens_focal_length}, {pc.camera_angle}, {pc.depth_of_field}, {pc.focus}.",
        f"Lighting: {sp.lighting.direction}, {sp.lighting.conditions}, {sp.lighting.shadows}.",
        f"Mood: {sp.aesthetics.mood_atmosphere}, {sp.aesthetics.color_scheme}.",
        f"Composition: {sp.aesthetics.composition}.",
        f"Subject Pose: {pose}.",
    ]
    return " ".join(" ".join(p.split()) for p in parts)


def build_prediction_input(descriptor: DerivedDescriptor) -> dict:
    """Request body for the render service's prediction endpoint."""
    structured = _dataclass_to_dict(descriptor.structured_prompt)
    pc = descriptor.structured_prompt.photographic_characteristics
    return {
        "input": {
            "prompt": build_rich_prompt(descriptor),
            "camera": pc.lens_focal_length,
            "aperture": pc.depth_of_field,
            "lighting": descriptor.structured_prompt.lighting.direction,
            "structured_prompt": structured,
            "structured_data": json.dumps(structured, ensure_ascii=False),
            "aspect_ratio": RENDER_ASPECT_RATIO,
            "num_outputs": RENDER_NUM_OUTPUTS,
            "disable_safety_checker": True,
        }
    }
