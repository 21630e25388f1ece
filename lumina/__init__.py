"""Lumina Studio — spatial camera/light editor core."""

from lumina.constants import APP_VERSION

__version__ = APP_VERSION
