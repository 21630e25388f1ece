"""Tests for the command-line entry point."""

import io
import json
from unittest.mock import patch

import pytest

from lumina.config import StudioConfig
from lumina.database import DatabaseManager, SceneRepository
from lumina.models.studio import Position
from main import build_parser, run


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "cli.db")


def _run(argv, config=None):
    out = io.StringIO()
    code = run(argv, config=config or StudioConfig(), out=out)
    return code, out.getvalue()


class TestParser:

    def test_rejects_unknown_aperture(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--aperture", "f/3.5"])

    def test_repeated_filters(self):
        args = build_parser().parse_args(["--filter", "Vignette", "--filter", "Cinematic"])
        assert args.filter == ["Vignette", "Cinematic"]


class TestRun:

    def test_prints_descriptor(self, db_path):
        code, text = _run([
            "--db", db_path,
            "--camera", "0", "60", "0",
            "--aperture", "f/2.8",
            "--prompt", "A jazz singer",
        ])
        assert code == 0
        data = json.loads(text)
        assert data["prompt"] == "A jazz singer"
        photo = data["structured_prompt"]["photographic_characteristics"]
        assert photo["lens_focal_length"] == "24mm Wide-Angle"
        assert "Shallow" in photo["depth_of_field"]

    def test_save_then_load_scene(self, db_path):
        code, _ = _run([
            "--db", db_path, "--subject", "car", "--filter", "Film Grain", "--save", "Garage",
        ])
        assert code == 0

        code, text = _run(["--db", db_path, "--scene", "Garage"])
        assert code == 0
        assert json.loads(text)["structured_prompt"]["short_description"] == "A sleek modern sports car"

        db = DatabaseManager(db_path)
        try:
            scenes = SceneRepository(db).list_scenes()
        finally:
            db.close()
        assert [s.name for s in scenes] == ["Garage"]
        assert scenes[0].state.filters == ("Film Grain",)

    def test_unknown_scene(self, db_path):
        code, text = _run(["--db", db_path, "--scene", "Missing"])
        assert code == 2
        assert text == ""

    def test_render_without_token_fails(self, db_path):
        code, text = _run(["--db", db_path, "--render"])
        assert code == 1
        assert "structured_prompt" in text

        db = DatabaseManager(db_path)
        try:
            renders = SceneRepository(db).list_renders()
        finally:
            db.close()
        assert renders[0].status == "failed"

    def test_direct_without_key_fails(self, db_path):
        code, _ = _run(["--db", db_path, "--direct", "moody noir"])
        assert code == 1

    def test_direct_applies_placement(self, db_path):
        cam, light = Position(0.0, 250.0, -80.0), Position(0.0, -120.0, 30.0)
        with patch("main.DirectorClient") as client_cls:
            client_cls.return_value.direct.return_value = (cam, light)
            code, text = _run(
                ["--db", db_path, "--direct", "heroic low angle"],
                config=StudioConfig(gemini_api_key="gm"),
            )
        assert code == 0
        client_cls.return_value.direct.assert_called_once()
        photo = json.loads(text)["structured_prompt"]["photographic_characteristics"]
        assert photo["camera_angle"] == "Low Angle / Hero View"
