"""Terminal chat client for room-based conversations over WebSocket."""

__version__ = "0.1.0"