from datetime import datetime, timedelta, timezone

from app.services.conflict_service import ConflictPair, Interval, detect_conflicts, intervals_overlap

BASE = datetime(2026, 6, 1, 9, 0, tzinfo=timezone.utc)


def at(hours: float) -> datetime:
    return BASE + timedelta(hours=hours)


def test_overlapping_intervals_for_same_subject_conflict():
    pairs = detect_conflicts(
        [
            Interval(("mc", "mc_1"), at(0), at(2), 0),
            Interval(("mc", "mc_1"), at(1), at(3), 1),
        ]
    )
    assert pairs == [ConflictPair(first=0, second=1, subject=("mc", "mc_1"))]


def test_touching_intervals_do_not_conflict():
    pairs = detect_conflicts(
        [
            Interval(("room", "srm_1"), at(0), at(1), 0),
            Interval(("room", "srm_1"), at(1), at(2), 1),
        ]
    )
    assert pairs == []
    assert not intervals_overlap(at(0), at(1), at(1), at(2))


def test_different_subjects_never_conflict():
    pairs = detect_conflicts(
        [
            Interval(("mc", "mc_1"), at(0), at(2), 0),
            Interval(("mc", "mc_2"), at(0), at(2), 1),
            # same raw id, different kind of subject
            Interval(("room", "mc_1"), at(0), at(2), 2),
        ]
    )
    assert pairs == []


def test_result_is_independent_of_input_order():
    intervals = [
        Interval(("room", "srm_1"), at(0), at(4), 2),
        Interval(("room", "srm_1"), at(1), at(2), 0),
        Interval(("room", "srm_1"), at(3), at(5), 1),
        Interval(("mc", "mc_9"), at(0), at(1), 3),
        Interval(("mc", "mc_9"), at(0.5), at(1.5), 0),
    ]
    forward = detect_conflicts(intervals)
    backward = detect_conflicts(list(reversed(intervals)))

    assert forward == backward
    assert [(pair.first, pair.second) for pair in forward] == [(0, 2), (0, 3), (1, 2)]
    assert all(pair.first < pair.second for pair in forward)


def test_interval_is_not_compared_with_itself():
    pairs = detect_conflicts(
        [
            Interval(("mc", "mc_1"), at(0), at(2), 4),
            Interval(("mc", "mc_1"), at(0), at(2), 4),
        ]
    )
    assert pairs == []


def test_contained_interval_conflicts_with_every_container():
    pairs = detect_conflicts(
        [
            Interval(("room", "srm_1"), at(0), at(10), 0),
            Interval(("room", "srm_1"), at(2), at(3), 1),
            Interval(("room", "srm_1"), at(2.5), at(8), 2),
            Interval(("room", "srm_1"), at(10), at(11), 3),
        ]
    )
    assert [(pair.first, pair.second) for pair in pairs] == [(0, 1), (0, 2), (1, 2)]
