"""Build a playable slide sequence from an eligible slide set.

Regular slides are weighted by priority, shuffled, de-duplicated where the
shuffle put the same slide twice in a row, interleaved with a dynamic pool
(live adoption profiles), and finally punctuated with the frequency slide
type every `frequency_n` positions.
"""

from __future__ import annotations

import random
from typing import List, Optional, Sequence

from models.screen_record import AdoptableCat, Schedule, Slide

DEFAULT_FREQUENCY_SLIDE_TYPE = "SNAP_AND_PURR"
DEFAULT_FREQUENCY_N = 5

# Upper bound on the number of dynamic slides used to compute the interleave spacing.
MAX_DYNAMIC_SPREAD = 8

VIRTUAL_SLIDE_ID_OFFSET = 100_000


def expand_by_priority(slides: Sequence[Slide]) -> List[Slide]:
    """Repeat each slide `max(1, priority)` times."""
    weighted: List[Slide] = []
    for slide in slides:
        weighted.extend([slide] * max(1, slide.priority))
    return weighted


def drop_adjacent_duplicates(slides: Sequence[Slide]) -> List[Slide]:
    """Remove entries identical (by id) to the entry right before them."""
    deduped: List[Slide] = []
    for slide in slides:
        if not deduped or deduped[-1].id != slide.id:
            deduped.append(slide)
    return deduped


def has_adjacent_duplicates(slides: Sequence[Slide]) -> bool:
    return any(a.id == b.id for a, b in zip(slides, slides[1:]))


def interleave_dynamic(regular: Sequence[Slide], dynamic: Sequence[Slide]) -> List[Slide]:
    """Insert one dynamic slide after every `interval` regular slides.

    `interval = max(2, len(regular) // min(len(dynamic), 8))`; dynamic slides
    left over once the regular sequence is exhausted are appended.
    """
    if not dynamic:
        return list(regular)
    if not regular:
        return list(dynamic)

    interval = max(2, len(regular) // min(len(dynamic), MAX_DYNAMIC_SPREAD))
    merged: List[Slide] = []
    dynamic_index = 0
    for position, slide in enumerate(regular, start=1):
        merged.append(slide)
        if position % interval == 0 and dynamic_index < len(dynamic):
            merged.append(dynamic[dynamic_index])
            dynamic_index += 1
    merged.extend(dynamic[dynamic_index:])
    return merged


def inject_frequency_slides(
    sequence: Sequence[Slide],
    frequency_slides: Sequence[Slide],
    frequency_n: int,
) -> List[Slide]:
    """Insert a frequency slide after every `frequency_n`-th entry, round-robin.

    When `sequence` is too short for any insertion, one frequency slide is
    appended so that it appears at least once.
    """
    if not frequency_slides or frequency_n <= 0:
        return list(sequence)

    result: List[Slide] = []
    inserted = 0
    for position, slide in enumerate(sequence, start=1):
        result.append(slide)
        if position % frequency_n == 0:
            result.append(frequency_slides[inserted % len(frequency_slides)])
            inserted += 1

    if result and inserted == 0:
        result.append(frequency_slides[0])
    return result


def build_rotation(
    slides: Sequence[Slide],
    frequency_slide_type: str = DEFAULT_FREQUENCY_SLIDE_TYPE,
    frequency_n: int = DEFAULT_FREQUENCY_N,
    dynamic_slides: Sequence[Slide] = (),
    rng: Optional[random.Random] = None,
) -> List[Slide]:
    """Turn an eligible slide set into a playable rotation.

    Args:
        slides: Eligible slides, regular and frequency type mixed.
        frequency_slide_type: Content type injected every `frequency_n` slides.
        frequency_n: Injection period; values below 1 disable injection.
        dynamic_slides: Externally sourced slides interleaved into the sequence.
        rng: Random source; the module-level generator is used when omitted.

    Returns:
        The rotation. It is empty only when there is nothing to show at all.
    """
    rng = rng or random.Random()

    frequency = [s for s in slides if s.type == frequency_slide_type]
    regular = [s for s in slides if s.type != frequency_slide_type]

    weighted = expand_by_priority(regular)
    rng.shuffle(weighted)
    deduped = drop_adjacent_duplicates(weighted)

    dynamic = list(dynamic_slides)
    rng.shuffle(dynamic)
    merged = interleave_dynamic(deduped, dynamic)

    if not merged:
        return list(frequency)
    return inject_frequency_slides(merged, frequency, frequency_n)


def cat_to_virtual_slide(cat: AdoptableCat) -> Slide:
    """Present an adoptable cat as an ADOPTION slide.

    Virtual ids are negative so they never collide with stored slides.
    """
    return Slide(
        id=-(cat.id + VIRTUAL_SLIDE_ID_OFFSET),
        type="ADOPTION",
        title=cat.display_name,
        priority=1,
        duration_seconds=10,
        is_active=True,
        sort_order=cat.sort_order,
        schedule=Schedule(enabled=False),
        body=cat.bio,
        image_path=cat.image_url,
    )
