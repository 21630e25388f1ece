"""Background QThread workers for external service calls."""

from lumina.workers.director_worker import DirectorWorker
from lumina.workers.render_worker import RenderWorker

__all__ = [
    "DirectorWorker",
    "RenderWorker",
]
