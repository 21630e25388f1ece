"""Scene repository — saved scenes, render history and app settings.

All SQL operates against the schema defined in ``db_manager.py``.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime

from lumina.core.serializers import descriptor_to_dict, dict_to_state, state_to_dict
from lumina.database.db_manager import DatabaseManager
from lumina.models.render import RenderJob
from lumina.models.scene import RenderRecord, SavedScene
from lumina.models.studio import StudioState

logger = logging.getLogger(__name__)


def _load_state(state_json: str) -> StudioState:
    try:
        data = json.loads(state_json)
    except (TypeError, ValueError):
        logger.warning("Unreadable scene state, using defaults")
        return StudioState()
    if not isinstance(data, dict):
        return StudioState()
    return dict_to_state(data)


class SceneRepository:
    """CRUD repository for scenes, finished renders and settings."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    # ------------------------------------------------------------------
    # Scene CRUD
    # ------------------------------------------------------------------

    def save_scene(self, state: StudioState, name: str) -> str:
        """Insert a named snapshot of ``state``. Returns scene_id."""
        conn = self._db.connect()
        scene_id = str(uuid.uuid4())
        now = datetime.now().isoformat()
        conn.execute(
            "INSERT INTO scenes (id, name, state_json, created_at) VALUES (?, ?, ?, ?)",
            (scene_id, name, json.dumps(state_to_dict(state), ensure_ascii=False), now),
        )
        conn.commit()
        return scene_id

    def list_scenes(self, search_text: str | None = None) -> list[SavedScene]:
        """List scenes in creation order, optionally filtered by name."""
        conn = self._db.connect()
        sql = "SELECT id, name, state_json, created_at FROM scenes"
        params: list = []
        if search_text:
            sql += " WHERE name LIKE ?"
            params.append(f"%{search_text}%")
        sql += " ORDER BY created_at, rowid"
        rows = conn.execute(sql, params).fetchall()
        return [
            SavedScene(
                id=r[0],
                name=r[1],
                state=_load_state(r[2]),
                created_at=r[3] or "",
            )
            for r in rows
        ]

    def load_scene(self, scene_id: str) -> SavedScene:
        conn = self._db.connect()
        row = conn.execute(
            "SELECT id, name, state_json, created_at FROM scenes WHERE id = ?",
            (scene_id,),
        ).fetchone()
        if row is None:
            raise KeyError(f"Scene not found: {scene_id}")
        return SavedScene(
            id=row[0], name=row[1],
            state=_load_state(row[2]),
            created_at=row[3] or "",
        )

    def find_scene_by_name(self, name: str) -> SavedScene:
        """Most recently saved scene with exactly this name."""
        conn = self._db.connect()
        row = conn.execute(
            "SELECT id FROM scenes WHERE name = ? ORDER BY created_at DESC, rowid DESC LIMIT 1",
            (name,),
        ).fetchone()
        if row is None:
            raise KeyError(f"Scene not found: {name}")
        return self.load_scene(row[0])

    def rename_scene(self, scene_id: str, name: str) -> None:
        conn = self._db.connect()
        cursor = conn.execute("UPDATE scenes SET name = ? WHERE id = ?", (name, scene_id))
        conn.commit()
        if cursor.rowcount == 0:
            raise KeyError(f"Scene not found: {scene_id}")

    def delete_scene(self, scene_id: str) -> None:
        """Delete a scene; its renders keep their history with no scene."""
        conn = self._db.connect()
        conn.execute("DELETE FROM scenes WHERE id = ?", (scene_id,))
        conn.commit()

    # ------------------------------------------------------------------
    # Render history
    # ------------------------------------------------------------------

    def record_render(self, job: RenderJob, scene_id: str | None = None) -> str:
        """Persist a finished render job. Returns the record id."""
        conn = self._db.connect()
        descriptor_json = (
            json.dumps(descriptor_to_dict(job.descriptor), ensure_ascii=False)
            if job.descriptor is not None else None
        )
        prompt = job.descriptor.prompt if job.descriptor is not None else ""
        conn.execute(
            """INSERT OR REPLACE INTO render_history
               (id, scene_id, status, prompt, descriptor_json,
                output_url, error, attempts, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (job.id, scene_id, job.status.value, prompt, descriptor_json,
             job.output_url, job.error, job.attempts,
             job.created_at or datetime.now().isoformat()),
        )
        conn.commit()
        return job.id

    def list_renders(self, limit: int = 50) -> list[RenderRecord]:
        """Recorded renders, newest first."""
        conn = self._db.connect()
        rows = conn.execute(
            """SELECT id, scene_id, status, prompt, output_url, error, attempts, created_at
               FROM render_history
               ORDER BY created_at DESC, rowid DESC
               LIMIT ?""",
            (limit,),
        ).fetchall()
        return [
            RenderRecord(
                id=r[0], scene_id=r[1], status=r[2], prompt=r[3] or "",
                output_url=r[4], error=r[5], attempts=r[6] or 0,
                created_at=r[7] or "",
            )
            for r in rows
        ]

    # ------------------------------------------------------------------
    # App Settings
    # ------------------------------------------------------------------

    def get_setting(self, key: str, default: str | None = None) -> str | None:
        conn = self._db.connect()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row[0] if row else default

    def set_setting(self, key: str, value: str) -> None:
        """Set an application setting (upsert)."""
        conn = self._db.connect()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings (key, value) VALUES (?, ?)",
            (key, value),
        )
        conn.commit()

    def delete_setting(self, key: str) -> None:
        conn = self._db.connect()
        conn.execute("DELETE FROM app_settings WHERE key = ?", (key,))
        conn.commit()
