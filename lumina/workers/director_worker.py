"""Director worker — background thread for the director agent call."""

from __future__ import annotations

from typing import TYPE_CHECKING

from PyQt6.QtCore import QThread, pyqtSignal

if TYPE_CHECKING:
    from lumina.models.studio import Position
    from lumina.services.director_client import DirectorClient


class DirectorWorker(QThread):
    """Background thread for one director request.

    Signals:
        result_ready(object, object): camera and light Positions.
        error_occurred(str): Error message on failure.
    """

    result_ready = pyqtSignal(object, object)
    error_occurred = pyqtSignal(str)

    def __init__(self, client: DirectorClient, parent=None):
        super().__init__(parent)
        self._client = client
        self._prompt = ""
        self._camera: Position | None = None
        self._light: Position | None = None
        self._cancelled = False

    def setup(self, prompt: str, camera: Position, light: Position) -> None:
        self._prompt = prompt
        self._camera = camera
        self._light = light
        self._cancelled = False

    def cancel(self) -> None:
        """Request cancellation; a late result is dropped."""
        self._cancelled = True

    def run(self) -> None:
        try:
            if not self._prompt or self._camera is None or self._light is None:
                self.error_occurred.emit("Director request not configured.")
                return
            camera, light = self._client.direct(self._prompt, self._camera, self._light)
            if not self._cancelled:
                self.result_ready.emit(camera, light)
        except Exception as e:
            if not self._cancelled:
                self.error_occurred.emit(str(e))
