"""Cue generation from shared state."""

import logging
import time
from typing import Callable, Optional, Sequence

from cuesync.config import BroadcastConfig
from .types import Cue, CueParameters, CueState

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in milliseconds since epoch."""
    return int(time.time() * 1000)


def format_cue_id(sequence: int) -> str:
    """Format a sequence number as ``cue_NNN``.

    Example:
        >>> format_cue_id(7)
        'cue_007'
    """
    return f"cue_{sequence:03d}"


def color_for_sequence(sequence: int, palette: Sequence[str]) -> str:
    """Pick the palette entry for a sequence number.

    With the default palette this gives red for ``sequence % 3 == 0``,
    green for ``1`` and blue for ``2``, so the first cue is green.
    """
    return palette[sequence % len(palette)]


class CueGenerator:
    """Builds cues from the shared state.

    Each call to :meth:`generate` advances the counter by one and snapshots
    the currently selected effect.

    Example:
        >>> state = CueState()
        >>> generator = CueGenerator(state, clock=lambda: 1000)
        >>> generator.generate().to_dict()["cueId"]
        'cue_001'
    """

    def __init__(
        self,
        state: CueState,
        config: Optional[BroadcastConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.state = state
        self.config = config or BroadcastConfig()
        self.clock = clock or now_ms
        if not self.config.palette:
            raise ValueError("Cue palette must contain at least one colour")

    def generate(self) -> Cue:
        """Advance the counter and build the next cue."""
        sequence = self.state.next_sequence()
        current = self.clock()

        cue = Cue(
            cue_id=format_cue_id(sequence),
            current_timestamp=current,
            target_timestamp=current + self.config.target_offset_ms,
            effect_id=self.state.effect_id,
            parameters=CueParameters(
                color=color_for_sequence(sequence, self.config.palette),
                duration=self.config.duration_ms,
            ),
        )
        logger.debug("Generated %s (effect=%r)", cue.cue_id, cue.effect_id)
        return cue
