from __future__ import annotations

from typing import Awaitable, Callable, Generic, TypeVar


T = TypeVar("T")


class LatestSnapshot(Generic[T]):
    """Holds the newest list result and drops responses from superseded loads.

    Every ``load`` takes a new generation number. A result is published only
    if no newer load has started meanwhile, so a slow, abandoned request can
    never overwrite fresher data.
    """

    def __init__(self) -> None:
        self._generation = 0
        self._published_generation = 0
        self._value: T | None = None

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def generation(self) -> int:
        return self._published_generation

    def begin(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def publish(self, generation: int, value: T) -> bool:
        if not self.is_current(generation):
            return False
        self._value = value
        self._published_generation = generation
        return True

    def abandon(self) -> None:
        # Invalidate every in-flight load, e.g. when the caller navigates away.
        self._generation += 1

    async def load(self, fetch: Callable[[], Awaitable[T]]) -> T | None:
        # Returns the fetched value when it was published, otherwise None.
        generation = self.begin()
        value = await fetch()
        if self.publish(generation, value):
            return value
        return None
