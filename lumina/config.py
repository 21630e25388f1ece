"""Runtime configuration — service credentials and endpoint settings.

Credentials are passed explicitly to the clients that need them. They can
come from constructor arguments, environment variables, or the
``app_settings`` table (see :meth:`StudioConfig.with_settings`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Mapping

from lumina.constants import (
    GEMINI_BASE_URL,
    GEMINI_MODEL,
    MAX_POLL_ATTEMPTS,
    POLL_INTERVAL_S,
    REPLICATE_BASE_URL,
    REPLICATE_MODEL,
    REQUEST_TIMEOUT_S,
)

if TYPE_CHECKING:
    from lumina.database.scene_repository import SceneRepository

# Settings keys in app_settings
REPLICATE_KEY_SETTING = "replicate_api_token"
GEMINI_KEY_SETTING = "gemini_api_key"

_REPLICATE_ENV = ("LUMINA_REPLICATE_KEY", "REPLICATE_API_TOKEN")
_GEMINI_ENV = ("LUMINA_GEMINI_KEY", "GEMINI_API_KEY", "API_KEY")


def _first_env(env: Mapping[str, str], names: tuple[str, ...]) -> str:
    for name in names:
        value = env.get(name, "").strip()
        if value:
            return value
    return ""


@dataclass(frozen=True)
class StudioConfig:
    """Settings for the render and director services.

    Attributes:
        replicate_api_token: Render service token (required to render).
        gemini_api_key: Director agent key (required for agent mode).
        replicate_model: ``owner/name`` of the render model.
        proxy_url: Optional CORS-style proxy prefix; the target URL is
            URL-encoded and appended to it.
        poll_interval_s: Delay between status polls [s].
        max_poll_attempts: Poll ceiling before the job times out.
    """
    replicate_api_token: str = ""
    gemini_api_key: str = ""
    replicate_model: str = REPLICATE_MODEL
    replicate_base_url: str = REPLICATE_BASE_URL
    proxy_url: str = ""
    gemini_model: str = GEMINI_MODEL
    gemini_base_url: str = GEMINI_BASE_URL
    poll_interval_s: float = POLL_INTERVAL_S
    max_poll_attempts: int = MAX_POLL_ATTEMPTS
    request_timeout_s: float = REQUEST_TIMEOUT_S

    @property
    def has_replicate_key(self) -> bool:
        return bool(self.replicate_api_token)

    @property
    def has_gemini_key(self) -> bool:
        return bool(self.gemini_api_key)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> StudioConfig:
        """Build a config from environment variables."""
        env = os.environ if env is None else env
        return cls(
            replicate_api_token=_first_env(env, _REPLICATE_ENV),
            gemini_api_key=_first_env(env, _GEMINI_ENV),
            replicate_model=env.get("LUMINA_REPLICATE_MODEL", REPLICATE_MODEL),
            proxy_url=env.get("LUMINA_PROXY_URL", ""),
        )

    def with_settings(self, repo: SceneRepository) -> StudioConfig:
        """Fill missing credentials from stored application settings."""
        return replace(
            self,
            replicate_api_token=self.replicate_api_token
            or (repo.get_setting(REPLICATE_KEY_SETTING) or ""),
            gemini_api_key=self.gemini_api_key
            or (repo.get_setting(GEMINI_KEY_SETTING) or ""),
        )
