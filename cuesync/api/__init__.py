from .app import create_app, create_static_app
from .connection_registry import Connection, ConnectionRegistry, ConnectionState
from .session import SessionHandler

__all__ = [
    "create_app",
    "create_static_app",
    "Connection",
    "ConnectionRegistry",
    "ConnectionState",
    "SessionHandler",
]
