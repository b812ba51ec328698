"""Tests for the seen-set tracker."""

from __future__ import annotations

from mail_notifier.polling import SeenSet


def test_seen_set_tracks_marked_uids() -> None:
    seen = SeenSet([1, 2])

    seen.mark(3)
    seen.mark_all([3, 4])

    assert seen.contains(3)
    assert 4 in seen
    assert not seen.contains(5)
    assert len(seen) == 4


def test_empty_seen_set_contains_nothing() -> None:
    seen = SeenSet()

    assert not seen.contains(1)
    assert len(seen) == 0
