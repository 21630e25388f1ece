"""Render service client — prediction creation and cache-busted status polls.

Thin HTTP layer over the Replicate predictions API. Raises the
``lumina.core.errors`` types; job-level policy (retry, timeout) lives in
:mod:`lumina.core.render_job`.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import Any, Callable
from urllib.parse import quote

import requests
from pydantic import ValidationError

from lumina.config import StudioConfig
from lumina.constants import ERROR_BODY_LIMIT
from lumina.core.errors import MalformedResponseError, MissingCredentialError, ServiceError
from lumina.services.schemas import PredictionResponse

logger = logging.getLogger(__name__)

SERVICE_NAME = "Replicate"


def cache_bust_url(url: str, timestamp_ms: int, nonce: str) -> str:
    """Append ``t`` and ``nonce`` query parameters to ``url``."""
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}t={timestamp_ms}&nonce={nonce}"


def _parse_prediction(response: requests.Response) -> PredictionResponse:
    try:
        body = response.json()
    except ValueError as e:
        raise MalformedResponseError(f"Invalid JSON from {SERVICE_NAME}: {e}") from e
    if not isinstance(body, dict):
        raise MalformedResponseError(f"Unexpected {SERVICE_NAME} response: {body!r}")
    try:
        return PredictionResponse.model_validate(body)
    except ValidationError as e:
        raise MalformedResponseError(f"Malformed {SERVICE_NAME} prediction: {e}") from e


class ReplicateClient:
    """HTTP client for one render model.

    Args:
        config: Credentials and endpoint settings.
        session: Optional ``requests.Session`` (injected in tests).
        clock: Seconds-since-epoch source for cache-busting timestamps.
        nonce_factory: Random token source for cache-busting.
    """

    def __init__(
        self,
        config: StudioConfig,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
        nonce_factory: Callable[[], str] = lambda: secrets.token_hex(8),
    ):
        self._config = config
        self._session = session or requests.Session()
        self._clock = clock
        self._nonce_factory = nonce_factory

    @property
    def model_endpoint(self) -> str:
        base = self._config.replicate_base_url.rstrip("/")
        return f"{base}/models/{self._config.replicate_model}/predictions"

    def _proxied(self, url: str) -> str:
        if not self._config.proxy_url:
            return url
        return f"{self._config.proxy_url}{quote(url, safe='')}"

    def _headers(self) -> dict[str, str]:
        token = self._config.replicate_api_token
        if not token:
            raise MissingCredentialError(SERVICE_NAME)
        return {
            "Authorization": f"Token {token}",
            "Content-Type": "application/json",
        }

    def create_prediction(self, payload: dict[str, Any]) -> PredictionResponse:
        """Start a prediction.

        Raises:
            MissingCredentialError: No API token configured.
            ServiceError: Network failure or non-2xx status.
            MalformedResponseError: Body is not a prediction record.
        """
        headers = self._headers()
        try:
            response = self._session.post(
                self._proxied(self.model_endpoint),
                json=payload,
                headers=headers,
                timeout=self._config.request_timeout_s,
            )
        except requests.RequestException as e:
            raise ServiceError(f"{SERVICE_NAME} API request failed: {e}") from e

        if not response.ok:
            body = response.text or "Unknown error"
            raise ServiceError(
                f"{SERVICE_NAME} API Error ({response.status_code}): {body[:ERROR_BODY_LIMIT]}",
                status_code=response.status_code,
                body=body,
            )
        prediction = _parse_prediction(response)
        logger.info("Prediction initialized: %s (%s)", prediction.id, prediction.status)
        return prediction

    def get_prediction(self, poll_url: str) -> PredictionResponse:
        """Fetch prediction status, defeating intermediary caches.

        A fresh timestamp and random nonce are appended on every call and
        no-store semantics are requested.
        """
        headers = self._headers()
        headers["Cache-Control"] = "no-cache, no-store"
        headers["Pragma"] = "no-cache"
        url = cache_bust_url(poll_url, int(self._clock() * 1000), self._nonce_factory())
        try:
            response = self._session.get(
                self._proxied(url),
                headers=headers,
                timeout=self._config.request_timeout_s,
            )
        except requests.RequestException as e:
            raise ServiceError(f"{SERVICE_NAME} status check failed: {e}") from e

        if not response.ok:
            raise ServiceError(
                f"Polling status check failed: {response.status_code}",
                status_code=response.status_code,
                body=response.text or "",
            )
        return _parse_prediction(response)

    def cancel_prediction(self, cancel_url: str) -> None:
        """Ask the service to stop a running prediction."""
        try:
            response = self._session.post(
                self._proxied(cancel_url),
                headers=self._headers(),
                timeout=self._config.request_timeout_s,
            )
        except requests.RequestException as e:
            raise ServiceError(f"{SERVICE_NAME} cancel failed: {e}") from e
        if not response.ok:
            raise ServiceError(
                f"{SERVICE_NAME} cancel failed ({response.status_code})",
                status_code=response.status_code,
                body=response.text or "",
            )
