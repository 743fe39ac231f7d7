"""Cue module data types."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class CueState:
    """Process-wide state shared by sessions and the cue generator.

    A single instance is created at startup and injected into both the
    session handler (writer of ``effect_id``) and the cue generator
    (reader of ``effect_id``, owner of ``counter``).

    Attributes:
        effect_id: Currently selected effect. Last writer wins across all
            clients; stored verbatim without validation.
        counter: Number of cues generated so far. Never reset.
    """
    effect_id: Any = 0
    counter: int = 0

    def select_effect(self, effect_id: Any) -> None:
        """Overwrite the selected effect."""
        self.effect_id = effect_id

    def next_sequence(self) -> int:
        """Increment the counter and return the new value."""
        self.counter += 1
        return self.counter


@dataclass(frozen=True)
class CueParameters:
    """Effect parameters carried by a cue.

    Attributes:
        color: Hex colour string, e.g. ``"#00FF00"``.
        duration: Effect display time in milliseconds.
    """
    color: str
    duration: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "color": self.color,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class Cue:
    """One broadcast payload telling clients when and how to fire an effect.

    Attributes:
        cue_id: ``cue_`` followed by the sequence number padded to 3 digits.
        current_timestamp: Generation time, ms since epoch.
        target_timestamp: Time at which clients should fire the effect.
        effect_id: Snapshot of the selected effect at generation time.
        parameters: Colour and duration for the effect.
    """
    cue_id: str
    current_timestamp: int
    target_timestamp: int
    effect_id: Any
    parameters: CueParameters

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire representation (camelCase keys)."""
        return {
            "cueId": self.cue_id,
            "currentTimestamp": self.current_timestamp,
            "targetTimestamp": self.target_timestamp,
            "effectId": self.effect_id,
            "parameters": self.parameters.to_dict(),
        }
