"""
Continuation merging.

A town area that does not fit in one KEN_ALL row is continued on the next
row(s), which repeat every other column. The tell is an opening full-width
parenthesis that is still open when the field ends.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .models import Postcode


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Pending:
    record: Postcode


MergeState = Union[Idle, Pending]


class ContinuationMerger:
    """Two-state machine: Idle, or Pending(record) while a bracket is open."""

    def __init__(self) -> None:
        self.state: MergeState = Idle()

    @property
    def pending(self) -> Optional[Postcode]:
        if isinstance(self.state, Pending):
            return self.state.record
        return None

    def feed(self, record: Postcode) -> Optional[Postcode]:
        """
        Consume one raw record.

        Returns the complete record once its town area is closed, or None
        while more rows are needed.
        """
        if isinstance(self.state, Pending):
            target = self.state.record.merged_with(record)
        else:
            target = record

        if target.is_unclosed_town_area():
            self.state = Pending(target)
            return None

        self.state = Idle()
        return target

    def finish(self) -> Optional[Postcode]:
        """Reset at end of input, returning the record left unclosed, if any."""
        dropped = self.pending
        self.state = Idle()
        return dropped
