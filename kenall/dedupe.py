"""Duplicate suppression within a window of nearby postcodes."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Set

from .models import Postcode
from .rules import DEFAULT_INTERLEAVED_AREA_GROUPS


class DeduplicationWindow:
    """
    Records already written for the current run of nearby postcodes.

    Expanding parentheses frequently reproduces a record an adjacent row
    already produced. KEN_ALL is sorted by area code rather than postcode, so
    the window follows the 3-digit area group: it keeps growing while the
    area group stays the same and starts over when it changes.
    """

    def __init__(self, interleaved_area_groups: Iterable[Sequence[str]] = DEFAULT_INTERLEAVED_AREA_GROUPS):
        self.interleaved_area_groups = [frozenset(group) for group in interleaved_area_groups]
        self.records: List[Postcode] = []
        self._seen: Set[Postcode] = set()
        self.duplicates = 0
        self.resets = 0

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, record: Postcode) -> bool:
        return record in self._seen

    def admit(self, candidates: Iterable[Postcode]) -> List[Postcode]:
        """Return the candidates not seen before, in order, and slide the window."""
        survivors: List[Postcode] = []
        accepted: Set[Postcode] = set()
        for candidate in candidates:
            if candidate in self._seen or candidate in accepted:
                self.duplicates += 1
                continue
            accepted.add(candidate)
            survivors.append(candidate)

        current = survivors[0] if survivors else None
        last = self.records[0] if self.records else None
        if self._is_nearby(current, last):
            self.records.extend(survivors)
            self._seen.update(accepted)
        else:
            if self.records:
                self.resets += 1
            self.records = survivors
            self._seen = accepted
        return survivors

    def _is_nearby(self, current: Optional[Postcode], last: Optional[Postcode]) -> bool:
        if current is None:
            return True
        if last is None:
            return False
        if current.area_group == last.area_group:
            return True
        return any(
            current.area_group in group and last.area_group in group
            for group in self.interleaved_area_groups
        )
