"""Render job controller — submit / poll / resolve state machine.

States::

    idle → submitted → polling → succeeded | failed | canceled | timed_out

``dismiss()`` is the only way back to ``idle`` and is accepted from
terminal states only. Every failure resolves to exactly one terminal
status plus a message; no method here raises.

Active-job policy: submitting while a job is ``submitted``/``polling``
cancels that job first. A poll result that arrives for a job that is no
longer current (or no longer polling) is discarded.

Pure Python class (no Qt dependency). :class:`lumina.workers.render_worker.RenderWorker`
drives submit, polling and cancel from its own thread; a terminal job never
changes status again except through ``dismiss()``.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable

from lumina.config import StudioConfig
from lumina.core.errors import LuminaError, MalformedResponseError, ServiceError
from lumina.core.serializers import build_prediction_input
from lumina.models.descriptor import DerivedDescriptor
from lumina.models.render import RenderJob, RenderStatus
from lumina.services.replicate_client import ReplicateClient
from lumina.services.schemas import PredictionResponse

logger = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "Missing Replicate API Token."
NO_POLL_URL_MESSAGE = "Replicate API did not return a polling URL."
NO_OUTPUT_MESSAGE = "Generation succeeded but no output URL was returned by the model."
CANCELED_MESSAGE = "Render canceled."


class RenderJobController:
    """Drives one render job at a time against the render service.

    Args:
        config: Credentials, poll interval and attempt ceiling.
        client: Service client; built from ``config`` when omitted.
        on_change: Optional callback invoked with the job after every
            status change.
    """

    def __init__(
        self,
        config: StudioConfig,
        client: ReplicateClient | None = None,
        on_change: Callable[[RenderJob], None] | None = None,
    ):
        self._config = config
        self._client = client or ReplicateClient(config)
        self._on_change = on_change
        self._job = RenderJob()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def job(self) -> RenderJob:
        """Current job handle (an idle placeholder when nothing runs)."""
        return self._job

    @property
    def status(self) -> RenderStatus:
        return self._job.status

    @property
    def config(self) -> StudioConfig:
        return self._config

    def set_config(self, config: StudioConfig) -> None:
        """Replace credentials for subsequent submissions."""
        self._config = config
        self._client = ReplicateClient(config)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _set_status(self, job: RenderJob, status: RenderStatus) -> None:
        job.status = status
        if status.is_terminal:
            job.finished_at = datetime.now().isoformat()
        if self._on_change is not None:
            self._on_change(job)

    def _fail(self, job: RenderJob, message: str, status: RenderStatus = RenderStatus.FAILED) -> RenderJob:
        if job.is_terminal:
            return job
        job.error = message
        logger.warning("Render job %s %s: %s", job.id, status.value, message)
        self._set_status(job, status)
        return job

    def submit(self, descriptor: DerivedDescriptor) -> RenderJob:
        """Create a new render job for ``descriptor``.

        Returns:
            The new job handle: ``polling`` on success, otherwise already
            terminal (``failed`` or resolved directly by the create call).
        """
        if self._job.is_active:
            logger.info("Canceling active render job %s for new submission", self._job.id)
            self.cancel()

        job = RenderJob(
            status=RenderStatus.SUBMITTED,
            descriptor=descriptor,
            created_at=datetime.now().isoformat(),
        )
        self._job = job
        if self._on_change is not None:
            self._on_change(job)

        if not self._config.has_replicate_key:
            return self._fail(job, MISSING_TOKEN_MESSAGE)

        try:
            prediction = self._client.create_prediction(build_prediction_input(descriptor))
        except LuminaError as e:
            return self._fail(job, str(e))

        if job is not self._job:
            return job

        job.prediction_id = prediction.id
        job.upstream_status = prediction.status
        job.poll_url = prediction.urls.get or ""
        job.cancel_url = prediction.urls.cancel or ""

        if prediction.is_terminal:
            self._resolve(job, prediction)
            return job
        if not job.poll_url:
            return self._fail(job, NO_POLL_URL_MESSAGE)

        self._set_status(job, RenderStatus.POLLING)
        return job

    def poll_once(self) -> RenderStatus:
        """Issue one status poll for the current job.

        Transport errors and malformed bodies are logged and count as an
        attempt; the job stays ``polling`` until the attempt ceiling.
        """
        job = self._job
        if job.status is not RenderStatus.POLLING:
            return job.status

        job.attempts += 1
        try:
            prediction = self._client.get_prediction(job.poll_url)
        except (ServiceError, MalformedResponseError) as e:
            logger.warning("Polling attempt %d for job %s failed: %s", job.attempts, job.id, e)
            prediction = None

        if job is not self._job or job.status is not RenderStatus.POLLING:
            logger.info("Discarding poll result for inactive job %s", job.id)
            return job.status

        if prediction is not None:
            logger.info("Polling attempt %d: %s", job.attempts, prediction.status)
            job.upstream_status = prediction.status
            if prediction.is_terminal:
                self._resolve(job, prediction)
                return job.status

        if job.attempts >= self._config.max_poll_attempts:
            limit = self._config.max_poll_attempts * self._config.poll_interval_s
            self._fail(job, f"Prediction timed out ({limit:g}s limit).", RenderStatus.TIMED_OUT)
        return job.status

    def run(self, sleep: Callable[[float], None] = time.sleep) -> RenderJob:
        """Poll once per interval until the current job leaves ``polling``.

        Returns immediately if the job is canceled or replaced while
        sleeping.
        """
        job = self._job
        while job is self._job and job.status is RenderStatus.POLLING:
            sleep(self._config.poll_interval_s)
            if job is not self._job or job.status is not RenderStatus.POLLING:
                break
            self.poll_once()
        return job

    def submit_and_wait(
        self,
        descriptor: DerivedDescriptor,
        sleep: Callable[[float], None] = time.sleep,
    ) -> RenderJob:
        self.submit(descriptor)
        return self.run(sleep=sleep)

    def cancel(self) -> bool:
        """Cancel the active job. Returns False when nothing is active."""
        job = self._job
        if not job.is_active:
            return False
        cancel_url = job.cancel_url
        self._fail(job, CANCELED_MESSAGE, RenderStatus.CANCELED)
        if cancel_url:
            try:
                self._client.cancel_prediction(cancel_url)
            except LuminaError as e:
                logger.warning("Upstream cancel for job %s failed: %s", job.id, e)
        return True

    def dismiss(self) -> bool:
        """Discard a finished job and return to ``idle``."""
        if not self._job.is_terminal:
            return False
        self._job = RenderJob()
        if self._on_change is not None:
            self._on_change(self._job)
        return True

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _resolve(self, job: RenderJob, prediction: PredictionResponse) -> None:
        # A finished job never moves to another terminal state
        if job.is_terminal:
            logger.info("Ignoring %s result for finished job %s", prediction.status, job.id)
            return
        status = prediction.status
        if status == "succeeded":
            url = prediction.first_output()
            if url is None:
                self._fail(job, NO_OUTPUT_MESSAGE)
                return
            job.output_url = url
            logger.info("Render job %s complete: %s", job.id, url)
            self._set_status(job, RenderStatus.SUCCEEDED)
        elif status == "canceled":
            message = prediction.error_message() or "Unknown error"
            self._fail(job, f"Prediction canceled: {message}", RenderStatus.CANCELED)
        else:
            message = prediction.error_message() or "Unknown error"
            self._fail(job, f"Prediction failed: {message}")
