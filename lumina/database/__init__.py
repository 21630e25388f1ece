"""Database layer — SQLite connection, schema, and scene repository."""

from lumina.database.db_manager import DatabaseManager
from lumina.database.scene_repository import SceneRepository

__all__ = [
    "DatabaseManager",
    "SceneRepository",
]
