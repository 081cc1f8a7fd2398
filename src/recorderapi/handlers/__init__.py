"""
Request handlers for the control service.

    control.py   Recorder endpoints (start, pause, save, cancel, status)
    envelope.py  {"success": ..., "data"/"error": ...} response bodies
"""

from .control import ControlHandler, INDEX_PAGE
from .envelope import Envelope, Success, Error

__all__ = [
    "ControlHandler",
    "INDEX_PAGE",
    "Envelope",
    "Success",
    "Error",
]
