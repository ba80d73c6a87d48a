from datetime import datetime, timedelta, timezone

import pytest

from scheduler.availability import (
    events_at,
    events_overlapping,
    find_free_slots,
    find_free_windows,
    find_overlaps,
)
from tests.helpers import make_event

UTC = timezone.utc


def june(hour, minute=0):
    return datetime(2025, 6, 15, hour, minute, tzinfo=UTC)


def ev(id, start, end, **fields):
    return make_event(f"Meeting {id}", start, end, id=id, **fields)


class TestFindOverlaps:
    def test_empty_and_single(self):
        assert not find_overlaps([]).has_overlaps
        assert not find_overlaps([ev("1", june(10), june(11))]).has_overlaps

    def test_separate_meetings(self):
        events = [ev("1", june(10), june(11)), ev("2", june(12), june(13))]
        assert find_overlaps(events).overlaps == []

    def test_same_start(self):
        report = find_overlaps([ev("1", june(10), june(11)), ev("2", june(10), june(10, 30))])
        assert len(report.overlaps) == 1
        o = report.overlaps[0]
        assert (o.first.id, o.second.id) == ("1", "2")
        assert (o.overlap_start, o.overlap_end) == (june(10), june(10, 30))

    def test_partial(self):
        report = find_overlaps([ev("1", june(10), june(11, 30)), ev("2", june(11), june(12))])
        o = report.overlaps[0]
        assert (o.overlap_start, o.overlap_end) == (june(11), june(11, 30))

    def test_every_pair_is_reported(self):
        events = [
            ev("1", june(10), june(11, 30)),
            ev("2", june(11), june(12)),
            ev("3", june(11, 15), june(12, 30)),
        ]
        pairs = [(o.first.id, o.second.id) for o in find_overlaps(events).overlaps]
        assert pairs == [("1", "2"), ("1", "3"), ("2", "3")]

    def test_different_days(self):
        events = [
            ev("1", june(10), june(11)),
            ev("2", june(10) + timedelta(days=1), june(11) + timedelta(days=1)),
        ]
        assert not find_overlaps(events).has_overlaps

    def test_back_to_back_is_reported(self):
        report = find_overlaps([ev("1", june(10), june(11)), ev("2", june(11), june(12))])
        assert len(report.overlaps) == 1
        o = report.overlaps[0]
        assert o.overlap_start == o.overlap_end == june(11)

    def test_all_day_events_are_ignored(self):
        events = [
            ev("1", june(0), june(0) + timedelta(days=1), all_day=True),
            ev("2", june(10), june(11)),
        ]
        assert not find_overlaps(events).has_overlaps

    @pytest.mark.parametrize("a, b", [
        ((june(10), june(11)), (june(10, 30), june(12))),
        ((june(10), june(11)), (june(11), june(12))),
        ((june(10), june(11)), (june(13), june(14))),
        ((june(9), june(17)), (june(12), june(12, 30))),
    ])
    def test_symmetric(self, a, b):
        x, y = ev("x", *a), ev("y", *b)
        forward = [(o.overlap_start, o.overlap_end) for o in find_overlaps([x, y]).overlaps]
        backward = [(o.overlap_start, o.overlap_end) for o in find_overlaps([y, x]).overlaps]
        assert forward == backward


class TestFreeSlots:
    def test_no_meetings(self):
        assert find_free_slots([], june(9), UTC) == ["From 9:00 AM to 6:00 PM"]

    def test_between_meetings(self):
        events = [ev("1", june(10), june(11)), ev("2", june(14), june(15))]
        assert find_free_slots(events, june(9), UTC) == [
            "From 9:00 AM to 10:00 AM",
            "From 11:00 AM to 2:00 PM",
            "From 3:00 PM to 6:00 PM",
        ]

    def test_overlapping_meetings_merge(self):
        events = [ev("1", june(10), june(11, 30)), ev("2", june(11), june(12))]
        assert find_free_slots(events, june(9), UTC) == [
            "From 9:00 AM to 10:00 AM",
            "From 12:00 PM to 6:00 PM",
        ]

    def test_full_day(self):
        assert find_free_slots([ev("1", june(9), june(18))], june(9), UTC) == []

    def test_starts_from_now(self):
        events = [ev("1", june(9), june(10)), ev("2", june(14), june(15))]
        assert find_free_slots(events, june(12), UTC) == [
            "From 12:00 PM to 2:00 PM",
            "From 3:00 PM to 6:00 PM",
        ]

    def test_short_gaps_are_skipped(self):
        events = [
            ev("1", june(10), june(11)),
            ev("2", june(11, 15), june(12)),
            ev("3", june(14), june(15)),
        ]
        assert find_free_slots(events, june(9), UTC) == [
            "From 9:00 AM to 10:00 AM",
            "From 12:00 PM to 2:00 PM",
            "From 3:00 PM to 6:00 PM",
        ]

    def test_exactly_thirty_minutes_is_not_free(self):
        assert find_free_slots([ev("1", june(9, 30), june(17, 30))], june(9), UTC) == []

    def test_after_work_day(self):
        assert find_free_slots([], june(18, 30), UTC) == []

    def test_all_day_events_do_not_block(self):
        events = [ev("1", june(0), june(0) + timedelta(days=1), all_day=True)]
        assert find_free_slots(events, june(9), UTC) == ["From 9:00 AM to 6:00 PM"]

    def test_free_and_busy_cover_the_window(self):
        events = [
            ev("1", june(9, 45), june(10, 30)),
            ev("2", june(10, 40), june(11)),
            ev("3", june(13), june(13, 20)),
            ev("4", june(17, 45), june(18, 30)),
        ]
        start, end = june(9), june(18)
        slots = find_free_windows(events, start, end)
        assert slots[0].duration == timedelta(minutes=45)

        def minutes(a, b):
            lo = max(a, start)
            hi = min(b, end)
            return {int((lo - start).total_seconds() // 60) + i for i in range(max(0, int((hi - lo).total_seconds() // 60)))}

        free = set().union(*(minutes(s.start, s.end) for s in slots))
        busy = set().union(*(minutes(e.start, e.end) for e in events))
        assert not free & busy

        uncovered = sorted(set(range(9 * 60)) - free - busy)
        runs, run = [], 0
        for i, m in enumerate(uncovered):
            run = run + 1 if i and uncovered[i - 1] == m - 1 else 1
            runs.append(run)
        assert max(runs, default=0) <= 30


def test_events_at_is_half_open():
    e = ev("1", june(10), june(11))
    assert events_at([e], june(10)) == [e]
    assert events_at([e], june(10, 59)) == [e]
    assert events_at([e], june(11)) == []


def test_events_overlapping_window():
    early = ev("1", june(8), june(9))
    inside = ev("2", june(9, 30), june(10))
    late = ev("3", june(10), june(11))
    assert events_overlapping([late, early, inside], june(9), june(10)) == [inside]

