"""
WebSocket server and event handling for Euchre tables.
"""

from .events import *
from .server import app

__all__ = ["app"]
