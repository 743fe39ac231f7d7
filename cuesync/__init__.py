"""Cue Sync Server: synchronized AR effect cues over WebSocket."""

__version__ = "0.1.0"
