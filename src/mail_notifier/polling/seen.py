"""In-memory record of message ids that already entered the notify path."""

from __future__ import annotations

from collections.abc import Iterable


class SeenSet:
    """Grow-only set of message UIDs; lives exactly as long as the process."""

    def __init__(self, uids: Iterable[int] = ()) -> None:
        self._uids: set[int] = set(uids)

    def contains(self, uid: int) -> bool:
        return uid in self._uids

    def mark(self, uid: int) -> None:
        self._uids.add(uid)

    def mark_all(self, uids: Iterable[int]) -> None:
        self._uids.update(uids)

    def __contains__(self, uid: object) -> bool:
        return uid in self._uids

    def __len__(self) -> int:
        return len(self._uids)


__all__ = ["SeenSet"]
