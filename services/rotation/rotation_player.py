"""Playback cursor over a built rotation."""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence

from models.screen_record import Slide
from services.rotation.rotation_builder import (
    DEFAULT_FREQUENCY_N,
    DEFAULT_FREQUENCY_SLIDE_TYPE,
    build_rotation,
    has_adjacent_duplicates,
)

LOGGER = logging.getLogger(__name__)


def structural_key(slides: Sequence[Slide], dynamic_slides: Sequence[Slide] = ()) -> str:
    """Return a cheap fingerprint of a slide set: sorted `id:priority` pairs."""
    pairs = sorted(f"{s.id}:{s.priority}" for s in list(slides) + list(dynamic_slides))
    return ",".join(pairs)


class RotationPlayer:
    """Hold the current rotation and a cursor into it.

    The rotation is rebuilt only when the eligible set changes structurally or
    when playback wraps around, so a refresh with identical content never
    discards the in-progress position.
    """

    def __init__(
        self,
        frequency_slide_type: str = DEFAULT_FREQUENCY_SLIDE_TYPE,
        frequency_n: int = DEFAULT_FREQUENCY_N,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.frequency_slide_type = frequency_slide_type
        self.frequency_n = frequency_n
        self._rng = rng or random.Random()
        self._slides: List[Slide] = []
        self._dynamic: List[Slide] = []
        self._key: Optional[str] = None
        self._rotation: List[Slide] = []
        self._cursor = 0

    @property
    def rotation(self) -> List[Slide]:
        return list(self._rotation)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def is_empty(self) -> bool:
        return not self._rotation

    def _build(self) -> List[Slide]:
        return build_rotation(
            self._slides,
            frequency_slide_type=self.frequency_slide_type,
            frequency_n=self.frequency_n,
            dynamic_slides=self._dynamic,
            rng=self._rng,
        )

    def update(self, slides: Sequence[Slide], dynamic_slides: Sequence[Slide] = ()) -> bool:
        """Replace the eligible set; rebuild if it changed or nothing is playing.

        Returns:
            True if the rotation was rebuilt.
        """
        key = structural_key(slides, dynamic_slides)
        self._slides = list(slides)
        self._dynamic = list(dynamic_slides)
        if key == self._key and self._rotation:
            return False

        self._key = key
        self._rotation = self._build()
        if self._cursor >= len(self._rotation):
            self._cursor = 0
        LOGGER.info("Rotation rebuilt: %d entries from %d slides", len(self._rotation), len(self._slides))
        return True

    def set_frequency(self, frequency_n: int) -> None:
        """Change the injection period and rebuild on the next update."""
        if frequency_n != self.frequency_n:
            self.frequency_n = frequency_n
            self._key = None

    def current_slide(self) -> Optional[Slide]:
        """Return the slide under the cursor, or None for an empty rotation."""
        if not self._rotation:
            return None
        return self._rotation[self._cursor]

    def advance(self) -> Optional[Slide]:
        """Move to the next slide, reshuffling when a full cycle completes."""
        if not self._rotation:
            return None

        finished = self._rotation[self._cursor]
        next_index = (self._cursor + 1) % len(self._rotation)
        if next_index == 0 and len(self._rotation) > 1:
            self._reshuffle(finished)
        self._cursor = next_index
        return self.current_slide()

    def retreat(self) -> Optional[Slide]:
        """Move to the previous slide without reshuffling."""
        if not self._rotation:
            return None
        self._cursor = (self._cursor - 1) % len(self._rotation)
        return self.current_slide()

    def _reshuffle(self, finished: Slide) -> None:
        rotation = self._build()
        if len(rotation) > 1 and rotation[0].id == finished.id:
            rotation = self._move_off_front(rotation, finished)
        if rotation:
            self._rotation = rotation

    def _move_off_front(self, rotation: List[Slide], finished: Slide) -> List[Slide]:
        """Swap `finished` away from position 0 without creating adjacent repeats.

        When `finished` fills too many positions for any swap to work, its
        leading copy is dropped from this cycle instead.
        """
        candidates = [i for i in range(1, len(rotation)) if rotation[i].id != finished.id]
        self._rng.shuffle(candidates)
        for swap in candidates:
            swapped = list(rotation)
            swapped[0], swapped[swap] = swapped[swap], swapped[0]
            if not has_adjacent_duplicates(swapped):
                return swapped
        LOGGER.debug("Dropping leading copy of slide %s from the new cycle", finished.id)
        return rotation[1:]
