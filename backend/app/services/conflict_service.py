from __future__ import annotations

from collections import defaultdict
from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Interval:
    """A time box booked by one subject (a studio room or an MC).

    ``key`` identifies the booking to the caller, e.g. the index of the show in a plan document.
    """

    subject: Hashable
    start: datetime
    end: datetime
    key: int


@dataclass(frozen=True, order=True)
class ConflictPair:
    first: int
    second: int
    subject: Hashable


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    # Half-open ranges: touching intervals do not overlap.
    return start_a < end_b and start_b < end_a


def detect_conflicts(intervals: Iterable[Interval]) -> list[ConflictPair]:
    """Return every pair of overlapping intervals that share a subject.

    Pairs are ordered ``first < second`` by key and the result is sorted, so the same input
    always produces the same output regardless of the order it was given in.
    """
    by_subject: dict[Hashable, list[Interval]] = defaultdict(list)
    for interval in intervals:
        by_subject[interval.subject].append(interval)

    pairs: set[tuple[int, int, str]] = set()
    subjects: dict[tuple[int, int, str], Hashable] = {}
    for subject, bucket in by_subject.items():
        bucket.sort(key=lambda item: (item.start, item.end, item.key))
        for i, current in enumerate(bucket):
            for other in bucket[i + 1 :]:
                # Sorted by start, so nothing further along can overlap current.
                if other.start >= current.end:
                    break
                if current.key == other.key:
                    continue
                if not intervals_overlap(current.start, current.end, other.start, other.end):
                    continue
                first, second = sorted((current.key, other.key))
                marker = (first, second, repr(subject))
                pairs.add(marker)
                subjects[marker] = subject

    return [ConflictPair(first=item[0], second=item[1], subject=subjects[item]) for item in sorted(pairs)]
