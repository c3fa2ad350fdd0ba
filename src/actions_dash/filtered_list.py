"""Thread-safe list with a text filter and a selection cursor.

The same container backs the workflows, runs and jobs panes. It is written
from background completions and read from the render path, so every
operation holds the internal lock and reads hand out copies.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import Generic, TypeVar

T = TypeVar("T")

MatchFn = Callable[[T, str], bool]


def contains_casefold(haystack: str, needle: str) -> bool:
    """Case-insensitive substring test used by all list predicates."""
    return needle.casefold() in haystack.casefold()


class FilteredList(Generic[T]):
    """Ordered items, a derived filtered view and a clamped selection index.

    Invariant: ``0 <= selected_index < len(self)`` whenever the filtered view
    is non-empty, and ``selected_index == 0`` when it is empty.
    """

    def __init__(self, match_fn: MatchFn[T] | None) -> None:
        if match_fn is None:
            raise ValueError("match_fn cannot be None")
        self._lock = threading.RLock()
        self._all_items: list[T] = []
        self._filtered: list[T] = []
        self._filter = ""
        self._selected_idx = 0
        self._match_fn = match_fn

    # ── Mutations ──────────────────────────────────────────────────────

    def set_items(self, items: Iterable[T] | None) -> None:
        """Replace all items and re-apply the current filter."""
        with self._lock:
            self._all_items = list(items) if items is not None else []
            self._apply_filter()

    def set_filter(self, text: str) -> None:
        """Replace the filter text. An empty filter shows every item."""
        with self._lock:
            self._filter = text or ""
            self._apply_filter()

    def select_next(self) -> None:
        with self._lock:
            if self._filtered and self._selected_idx < len(self._filtered) - 1:
                self._selected_idx += 1

    def select_prev(self) -> None:
        with self._lock:
            if self._filtered and self._selected_idx > 0:
                self._selected_idx -= 1

    def select(self, index: int) -> None:
        """Move the cursor to ``index``, clamped into the filtered range."""
        with self._lock:
            self._selected_idx = index
            self._clamp_selected_index()

    def reset(self) -> None:
        """Clear the filter and move the cursor back to the first item."""
        with self._lock:
            self._filter = ""
            self._selected_idx = 0
            self._apply_filter()

    def _apply_filter(self) -> None:
        # Caller holds the lock.
        if not self._filter:
            self._filtered = list(self._all_items)
        else:
            self._filtered = [
                item for item in self._all_items if self._match_fn(item, self._filter)
            ]
        self._clamp_selected_index()

    def _clamp_selected_index(self) -> None:
        max_idx = len(self._filtered) - 1
        if max_idx < 0:
            self._selected_idx = 0
        elif self._selected_idx > max_idx:
            self._selected_idx = max_idx
        elif self._selected_idx < 0:
            self._selected_idx = 0

    # ── Reads ──────────────────────────────────────────────────────────

    def items(self) -> list[T]:
        """Return a copy of the filtered items."""
        with self._lock:
            return list(self._filtered)

    def all_items(self) -> list[T]:
        """Return a copy of every item regardless of the filter."""
        with self._lock:
            return list(self._all_items)

    def selected(self) -> tuple[T | None, bool]:
        """Return ``(item, True)`` for the selection or ``(None, False)`` when empty."""
        with self._lock:
            if not self._filtered:
                return None, False
            return self._filtered[self._selected_idx], True

    @property
    def selected_index(self) -> int:
        with self._lock:
            return self._selected_idx

    @property
    def filter_text(self) -> str:
        with self._lock:
            return self._filter

    def __len__(self) -> int:
        with self._lock:
            return len(self._filtered)

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"FilteredList(len={len(self._filtered)}/{len(self._all_items)}, "
                f"filter={self._filter!r}, selected={self._selected_idx})"
            )


__all__ = [
    "FilteredList",
    "MatchFn",
    "contains_casefold",
]
