"""Director agent client — creative intent to camera/light placement.

Sends the user's prompt and the current marker positions to a Gemini
model constrained to a JSON response schema, and returns new positions.
"""

from __future__ import annotations

import json
import logging

import requests
from pydantic import ValidationError

from lumina.config import StudioConfig
from lumina.constants import ERROR_BODY_LIMIT
from lumina.core.errors import MalformedResponseError, MissingCredentialError, ServiceError
from lumina.models.studio import Position
from lumina.services.schemas import DirectorResponse

logger = logging.getLogger(__name__)

SERVICE_NAME = "Gemini"

SYSTEM_INSTRUCTION = """
You are the "Director Agent" for Lumina, a spatial design tool.
Translate the user's creative intent into precise 3D coordinates for a
Camera and a Light source.

THE STAGE (3D COORDINATE SYSTEM):
- Subject: fixed at (0, 0, 0).
- X-Axis (Horizontal): negative = left, positive = right. Range -300 to 300.
- Y-Axis (Depth): negative = behind the subject, positive = in front. Range -300 to 300.
- Z-Axis (Height): 0 = eye level, positive = up, negative = down. Range -200 to 200.

CINEMATIC RULES:
1. Camera distance (X and Y combined): intimate/wide < 80, portrait ~120-150,
   telephoto/compressed > 200.
2. Camera height: hero shot Z < -40, bird's eye Z > 80, eye level Z ~ 0.
3. Lighting: side/Rembrandt light has X offset (e.g. X=100, Y=100);
   rim/backlight has negative Y (e.g. Y=-100); horror uplight has
   negative Z (e.g. Z=-50); overhead light has high Z (e.g. Z=150).

Move the camera to frame the shot and the light to sculpt the subject.
Return ONLY the JSON object with the new coordinates.
""".strip()

_COORDS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "x": {"type": "NUMBER"},
        "y": {"type": "NUMBER"},
        "z": {"type": "NUMBER"},
    },
    "required": ["x", "y", "z"],
}

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {"camera": _COORDS_SCHEMA, "light": _COORDS_SCHEMA},
    "required": ["camera", "light"],
}


def _coords(pos: Position) -> dict[str, float]:
    return {"x": pos.x, "y": pos.y, "z": pos.z}


def build_director_request(prompt: str, camera: Position, light: Position) -> dict:
    """generateContent request body for one director call."""
    contents = (
        f"Current State - Camera: {json.dumps(_coords(camera))}, "
        f"Light: {json.dumps(_coords(light))}.\n"
        f'User Request: "{prompt}".\n'
        "Act on the 3D space: Move the camera and light to achieve this look."
    )
    return {
        "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
        "contents": [{"role": "user", "parts": [{"text": contents}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
        },
    }


def parse_director_response(body: dict) -> tuple[Position, Position]:
    """Extract camera/light positions from a generateContent response."""
    try:
        parts = body["candidates"][0]["content"]["parts"]
        text = "".join(p.get("text", "") for p in parts)
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        raise MalformedResponseError(f"{SERVICE_NAME} response has no text: {e}") from e
    if not text.strip():
        raise MalformedResponseError(f"{SERVICE_NAME} returned an empty response.")
    try:
        result = DirectorResponse.model_validate_json(text)
    except ValidationError as e:
        raise MalformedResponseError(f"{SERVICE_NAME} returned invalid coordinates: {e}") from e
    cam, light = result.camera, result.light
    return Position(cam.x, cam.y, cam.z), Position(light.x, light.y, light.z)


class DirectorClient:
    """Gemini REST client for the director agent."""

    def __init__(self, config: StudioConfig, session: requests.Session | None = None):
        self._config = config
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        base = self._config.gemini_base_url.rstrip("/")
        return f"{base}/models/{self._config.gemini_model}:generateContent"

    def direct(self, prompt: str, camera: Position, light: Position) -> tuple[Position, Position]:
        """Ask the agent for a new camera/light arrangement.

        Raises:
            MissingCredentialError: No Gemini key configured.
            ServiceError: Network failure or non-2xx status.
            MalformedResponseError: Response lacks valid coordinates.
        """
        key = self._config.gemini_api_key
        if not key:
            raise MissingCredentialError(SERVICE_NAME)

        try:
            response = self._session.post(
                self.endpoint,
                params={"key": key},
                json=build_director_request(prompt, camera, light),
                headers={"Content-Type": "application/json"},
                timeout=self._config.request_timeout_s,
            )
        except requests.RequestException as e:
            raise ServiceError(f"{SERVICE_NAME} request failed: {e}") from e

        if not response.ok:
            body = response.text or "Unknown error"
            raise ServiceError(
                f"{SERVICE_NAME} API Error ({response.status_code}): {body[:ERROR_BODY_LIMIT]}",
                status_code=response.status_code,
                body=body,
            )
        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Invalid JSON from {SERVICE_NAME}: {e}") from e

        camera_pos, light_pos = parse_director_response(body)
        logger.info("Director placed camera at %s, light at %s", camera_pos, light_pos)
        return camera_pos, light_pos
