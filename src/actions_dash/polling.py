"""Adaptive polling interval driven by the reported API rate budget."""

from __future__ import annotations

from collections.abc import Callable

DEFAULT_BASE_INTERVAL = 2.0  # seconds
DEFAULT_MAX_INTERVAL = 30.0  # seconds

# remaining >= HIGH_WATER: base cadence
HIGH_WATER = 1000
# MID_WATER <= remaining < HIGH_WATER: LIGHT_CAUTION_FACTOR x base
MID_WATER = 500
LIGHT_CAUTION_FACTOR = 1.5
# LOW_WATER <= remaining < MID_WATER: CAUTION_FACTOR x base
LOW_WATER = 100
CAUTION_FACTOR = 2.0
# remaining < LOW_WATER: max interval


class AdaptivePoller:
    """Maps the remaining API budget to a polling interval in seconds.

    The step function is:

    - ``remaining >= 1000``: ``base_interval``
    - ``500 <= remaining < 1000``: ``1.5 * base_interval``
    - ``100 <= remaining < 500``: ``2 * base_interval``
    - ``remaining < 100``: ``max_interval``
    """

    __slots__ = ("_base_interval", "_max_interval", "_remaining_fn")

    def __init__(
        self,
        remaining_fn: Callable[[], int],
        *,
        base_interval: float = DEFAULT_BASE_INTERVAL,
        max_interval: float = DEFAULT_MAX_INTERVAL,
    ) -> None:
        self._remaining_fn = remaining_fn
        self._base_interval = base_interval
        self._max_interval = max_interval

    @property
    def base_interval(self) -> float:
        return self._base_interval

    @property
    def max_interval(self) -> float:
        return self._max_interval

    def next_interval(self) -> float:
        remaining = self._remaining_fn()
        if remaining < LOW_WATER:
            return self._max_interval
        if remaining < MID_WATER:
            return self._base_interval * CAUTION_FACTOR
        if remaining < HIGH_WATER:
            return self._base_interval * LIGHT_CAUTION_FACTOR
        return self._base_interval


__all__ = [
    "CAUTION_FACTOR",
    "DEFAULT_BASE_INTERVAL",
    "DEFAULT_MAX_INTERVAL",
    "HIGH_WATER",
    "LIGHT_CAUTION_FACTOR",
    "LOW_WATER",
    "MID_WATER",
    "AdaptivePoller",
]
