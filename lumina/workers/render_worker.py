"""Render worker — background thread for the render poll loop.

Runs RenderJobController.submit + run off the UI thread so the 1 s poll
interval never blocks the event loop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from PyQt6.QtCore import QThread, pyqtSignal

from lumina.models.render import RenderJob, RenderStatus

if TYPE_CHECKING:
    from lumina.core.render_job import RenderJobController
    from lumina.models.descriptor import DerivedDescriptor


class RenderWorker(QThread):
    """Background thread for one render job.

    Emits status_changed on every poll, result_ready with the image URL on
    success, error_occurred with the message on any other terminal state.
    Nothing is emitted for a job that was canceled or replaced while
    running.

    Usage:
        worker = RenderWorker(render_controller)
        worker.setup(descriptor)
        worker.result_ready.connect(on_image)
        worker.error_occurred.connect(on_error)
        worker.start()
    """

    status_changed = pyqtSignal(str)      # RenderStatus value
    result_ready = pyqtSignal(str)        # output URL
    error_occurred = pyqtSignal(str)

    def __init__(self, controller: RenderJobController, parent=None):
        super().__init__(parent)
        self._controller = controller
        self._descriptor: DerivedDescriptor | None = None
        self._job_id: str = ""
        self._cancelled = False

    @property
    def job_id(self) -> str:
        return self._job_id

    def setup(self, descriptor: DerivedDescriptor) -> None:
        """Configure the descriptor to render. Must be called before start()."""
        self._descriptor = descriptor
        self._job_id = ""
        self._cancelled = False

    def cancel(self) -> None:
        """Request cancellation (safe to call from the UI thread).

        Only sets a flag; the worker thread cancels the job and notifies
        the service at its next checkpoint.
        """
        self._cancelled = True

    def _sleep(self, seconds: float) -> None:
        self.msleep(int(seconds * 1000))

    def _cancel_own_job(self, job: RenderJob) -> None:
        if self._controller.job is job:
            self._controller.cancel()

    def run(self) -> None:
        """Submit and poll in the background thread."""
        if self._descriptor is None:
            self.error_occurred.emit("No descriptor to render.")
            return

        job = self._controller.submit(self._descriptor)
        self._job_id = job.id
        self.status_changed.emit(job.status.value)

        while job.status is RenderStatus.POLLING and not self._cancelled:
            self._sleep(self._controller.config.poll_interval_s)
            if self._cancelled or self._controller.job is not job:
                break
            self._controller.poll_once()
            self.status_changed.emit(job.status.value)

        if self._cancelled:
            self._cancel_own_job(job)
            return
        if self._controller.job is not job:
            return
        if job.status is RenderStatus.SUCCEEDED:
            self.result_ready.emit(job.output_url or "")
        elif job.status.is_terminal:
            self.error_occurred.emit(job.error or "Rendering failed.")
