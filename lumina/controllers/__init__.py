"""Controllers — Qt-facing mediators over the core state."""

from lumina.controllers.studio_controller import StudioController

__all__ = ["StudioController"]
