"""Wire schemas for the external render and director services."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

TERMINAL_PREDICTION_STATUSES = frozenset({"succeeded", "failed", "canceled"})


class PredictionUrls(BaseModel):
    model_config = ConfigDict(extra="ignore")

    get: str | None = None
    cancel: str | None = None


class PredictionResponse(BaseModel):
    """Prediction record returned by both the create and the status calls."""
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    status: str = Field(min_length=1)
    output: str | list[Any] | None = None
    error: Any = None
    urls: PredictionUrls = Field(default_factory=PredictionUrls)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_PREDICTION_STATUSES

    def first_output(self) -> str | None:
        """Single output reference; list outputs normalize to the first item."""
        out = self.output
        if isinstance(out, list):
            out = out[0] if out else None
        if out is None:
            return None
        text = str(out).strip()
        return text or None

    def error_message(self) -> str | None:
        if self.error in (None, ""):
            return None
        return str(self.error)


class Coordinates(BaseModel):
    x: float
    y: float
    z: float


class DirectorResponse(BaseModel):
    """Camera/light placement chosen by the director agent."""
    camera: Coordinates
    light: Coordinates
