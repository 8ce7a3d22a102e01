"""Process-lifetime cache of geocoded addresses."""

from __future__ import annotations

import threading

from ...models.domain import Coordinate


class GeocodeCache:
    """Maps the exact address string to its resolved coordinate.

    Keys are not normalised: case and whitespace differences produce separate
    entries. Entries are never evicted.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Coordinate] = {}
        self._lock = threading.Lock()

    def get(self, address: str) -> Coordinate | None:
        with self._lock:
            return self._entries.get(address)

    def put(self, address: str, coordinate: Coordinate) -> None:
        with self._lock:
            self._entries[address] = coordinate

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, address: object) -> bool:
        with self._lock:
            return address in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
