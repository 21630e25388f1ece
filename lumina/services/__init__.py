"""External services — render (Replicate) and director agent (Gemini) clients."""

from lumina.services.director_client import DirectorClient
from lumina.services.replicate_client import ReplicateClient

__all__ = [
    "DirectorClient",
    "ReplicateClient",
]
