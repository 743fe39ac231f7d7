"""Broadcast scheduling."""

from .broadcast_scheduler import BroadcastScheduler, BroadcastSchedulerConfig, serialize_cue

__all__ = [
    "BroadcastScheduler",
    "BroadcastSchedulerConfig",
    "serialize_cue",
]
