"""Tests for the weighted rotation builder."""

import random
from collections import Counter

from conftest import make_slide
from models.screen_record import AdoptableCat
from services.rotation.rotation_builder import (
    build_rotation,
    cat_to_virtual_slide,
    drop_adjacent_duplicates,
    expand_by_priority,
    inject_frequency_slides,
    interleave_dynamic,
)

SNAP = "SNAP_AND_PURR"


def _ids(slides):
    return [s.id for s in slides]


def test_expand_by_priority_treats_zero_as_one():
    slides = [make_slide(1, priority=3), make_slide(2, priority=0)]
    assert _ids(expand_by_priority(slides)) == [1, 1, 1, 2]


def test_drop_adjacent_duplicates():
    slides = [make_slide(i) for i in (1, 1, 2, 1, 1, 3)]
    assert _ids(drop_adjacent_duplicates(slides)) == [1, 2, 1, 3]


def test_interleave_uses_minimum_interval_of_two():
    regular = [make_slide(i) for i in range(1, 5)]
    dynamic = [make_slide(-1), make_slide(-2), make_slide(-3), make_slide(-4)]
    assert _ids(interleave_dynamic(regular, dynamic)) == [1, 2, -1, 3, 4, -2, -3, -4]


def test_interleave_spreads_over_at_most_eight_dynamic_slots():
    regular = [make_slide(i) for i in range(1, 33)]
    dynamic = [make_slide(-i) for i in range(1, 11)]
    merged = interleave_dynamic(regular, dynamic)
    # interval = 32 // 8 = 4
    assert _ids(merged[:5]) == [1, 2, 3, 4, -1]
    assert len(merged) == 42


def test_inject_after_every_nth_round_robin():
    sequence = [make_slide(i) for i in range(1, 11)]
    snaps = [make_slide(100, SNAP), make_slide(101, SNAP)]
    result = inject_frequency_slides(sequence, snaps, 5)
    assert _ids(result) == [1, 2, 3, 4, 5, 100, 6, 7, 8, 9, 10, 101]


def test_inject_into_short_sequence_appends_once():
    sequence = [make_slide(1), make_slide(2)]
    result = inject_frequency_slides(sequence, [make_slide(100, SNAP)], 5)
    assert _ids(result) == [1, 2, 100]


def test_inject_disabled_when_no_frequency_slides_or_period():
    sequence = [make_slide(i) for i in range(1, 7)]
    assert _ids(inject_frequency_slides(sequence, [], 5)) == _ids(sequence)
    assert _ids(inject_frequency_slides(sequence, [make_slide(100, SNAP)], 0)) == _ids(sequence)


def test_only_frequency_slides_are_returned_as_is():
    snaps = [make_slide(100, SNAP), make_slide(101, SNAP)]
    assert _ids(build_rotation(snaps, rng=random.Random(1))) == [100, 101]


def test_empty_input_gives_empty_rotation():
    assert build_rotation([], rng=random.Random(1)) == []


def test_no_adjacent_duplicates_across_many_rotations(rng):
    slides = [make_slide(1, priority=5), make_slide(2, priority=1), make_slide(3, priority=2)]
    for _ in range(300):
        rotation = build_rotation(slides, rng=rng)
        assert all(a.id != b.id for a, b in zip(rotation, rotation[1:]))


def test_priority_weighting_is_roughly_proportional(rng):
    slides = [make_slide(1, priority=1), make_slide(2, priority=2), make_slide(3, priority=3), make_slide(4, priority=4)]
    counts = Counter()
    for _ in range(2000):
        counts.update(s.id for s in build_rotation(slides, rng=rng))
    # Adjacent dedup trims the heaviest slide slightly; ordering must survive.
    assert counts[1] < counts[2] < counts[3] < counts[4]
    assert 1.3 < counts[2] / counts[1] < 2.5
    assert 2.5 < counts[4] / counts[1] < 4.5


def test_frequency_slides_appear_with_bounded_gaps(rng):
    regular = [make_slide(i, priority=2) for i in range(1, 9)]
    snaps = [make_slide(100, SNAP), make_slide(101, SNAP)]
    for _ in range(100):
        rotation = build_rotation(regular + snaps, frequency_n=5, rng=rng)
        assert len(rotation) >= 5
        assert any(s.type == SNAP for s in rotation)
        gap = 0
        for slide in rotation:
            gap = 0 if slide.type == SNAP else gap + 1
            assert gap <= 5


def test_dynamic_slides_are_mixed_in(rng):
    regular = [make_slide(i) for i in range(1, 7)]
    cats = [cat_to_virtual_slide(AdoptableCat(id=i, display_name=f"Cat {i}")) for i in (1, 2)]
    rotation = build_rotation(regular, dynamic_slides=cats, rng=rng)
    assert {s.id for s in rotation} >= {-100001, -100002}


def test_cat_to_virtual_slide():
    slide = cat_to_virtual_slide(AdoptableCat(id=12, display_name="Mochi", image_url="/m.png", bio="Sleepy"))
    assert slide.id == -100012
    assert slide.type == "ADOPTION"
    assert slide.title == "Mochi"
    assert slide.image_path == "/m.png"
    assert slide.duration_seconds == 10
    assert not slide.schedule.enabled
