"""Tests for lumina.core.serializers — state ↔ dict and render payloads.

Covers:
  - StudioState round-trip (Enum, nested dataclasses, filter order)
  - Tolerant loading: missing fields, camelCase keys, bad values
  - Descriptor wire shape and the flattened natural-language prompt
"""

import json

from lumina.constants import STATE_SCHEMA_VERSION
from lumina.core.serializers import (
    build_prediction_input,
    build_rich_prompt,
    descriptor_to_dict,
    dict_to_state,
    state_to_dict,
)
from lumina.core.spatial_math import derive
from lumina.models.studio import PostProcessing, Position, StudioState, SubjectType


def _make_state(**kwargs) -> StudioState:
    defaults = dict(
        camera=Position(-90.0, 120.0, 35.0),
        light=Position(10.0, -220.0, -60.0),
        aperture="f/11",
        prompt="A vintage motorcycle",
        filters=("Motion Blur", "Film Grain"),
        post_processing=PostProcessing(bloom=25, glare=0, distortion=70),
        subject_type=SubjectType.PRODUCT,
    )
    defaults.update(kwargs)
    return StudioState(**defaults)


class TestStateSerialization:

    def test_round_trip(self):
        state = _make_state()
        assert dict_to_state(state_to_dict(state)) == state

    def test_round_trip_through_json(self):
        state = _make_state()
        restored = dict_to_state(json.loads(json.dumps(state_to_dict(state))))
        assert restored == state
        assert restored.filters == ("Motion Blur", "Film Grain")

    def test_schema_version_embedded(self):
        assert state_to_dict(StudioState())["schema_version"] == STATE_SCHEMA_VERSION

    def test_enum_as_value(self):
        d = state_to_dict(_make_state())
        assert d["subject_type"] == "product"
        assert d["camera"] == {"x": -90.0, "y": 120.0, "z": 35.0}
        assert d["filters"] == ["Motion Blur", "Film Grain"]

    def test_empty_dict_gives_defaults(self):
        assert dict_to_state({}) == StudioState()

    def test_camel_case_keys(self):
        data = {
            "camera": {"x": 1, "y": 2, "z": 3},
            "postProcessing": {"bloom": 30, "glare": 40, "distortion": 50},
            "subjectType": "car",
            "filters": ["Vignette"],
        }
        state = dict_to_state(data)
        assert state.camera == Position(1.0, 2.0, 3.0)
        assert state.post_processing == PostProcessing(30, 40, 50)
        assert state.subject_type is SubjectType.CAR

    def test_unknown_subject_falls_back_to_person(self):
        assert dict_to_state({"subject_type": "dragon"}).subject_type is SubjectType.PERSON

    def test_bad_numbers_fall_back(self):
        state = dict_to_state({"camera": {"x": "left", "y": None}, "post_processing": {"bloom": "lots"}})
        assert state.camera == StudioState().camera
        assert state.post_processing.bloom == 0

    def test_non_list_filters_ignored(self):
        assert dict_to_state({"filters": "Vignette"}).filters == ()


class TestDescriptorPayload:

    def setup_method(self):
        self.descriptor = derive(
            camera=Position(0.0, 60.0, 0.0),
            light=Position(100.0, -100.0, 20.0),
            prompt="A jazz singer",
            aperture="f/2.8",
        )

    def test_descriptor_wire_shape(self):
        d = descriptor_to_dict(self.descriptor)
        assert d["prompt"] == "A jazz singer"
        sp = d["structured_prompt"]
        assert set(sp) == {
            "short_description", "style_medium", "artistic_style",
            "photographic_characteristics", "lighting", "aesthetics", "objects",
        }
        assert sp["lighting"]["direction"] == "Rim / Back Lighting"
        assert sp["objects"][0]["action_pose"] == "Facing Camera"
        json.dumps(d)  # JSON-safe

    def test_rich_prompt_mentions_every_section(self):
        text = build_rich_prompt(self.descriptor)
        assert text.startswith("A jazz singer.")
        for marker in ("Style:", "Camera:", "Lighting:", "Mood:", "Composition:", "Subject Pose:"):
            assert marker in text
        assert "24mm Wide-Angle" in text
        assert "Rim / Back Lighting" in text
        assert "Facing Camera" in text
        assert "  " not in text and "\n" not in text

    def test_prediction_input(self):
        body = build_prediction_input(self.descriptor)
        inp = body["input"]
        assert inp["prompt"] == build_rich_prompt(self.descriptor)
        assert inp["aspect_ratio"] == "16:9"
        assert inp["num_outputs"] == 1
        assert inp["camera"] == "24mm Wide-Angle"
        assert inp["lighting"] == "Rim / Back Lighting"
        assert json.loads(inp["structured_data"]) == inp["structured_prompt"]
        assert inp["structured_prompt"]["short_description"] == "A jazz singer"
