from .types import Cue, CueParameters, CueState
from .generator import CueGenerator, color_for_sequence, format_cue_id

__all__ = [
    "Cue",
    "CueParameters",
    "CueState",
    "CueGenerator",
    "color_for_sequence",
    "format_cue_id",
]
