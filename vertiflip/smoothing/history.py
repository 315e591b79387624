from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Iterator, Optional

from vertiflip.cropping.types import CropDecision


@dataclass
class FrameRecord:
    """A frame withheld until the smoother settles on its crop."""
    decision: CropDecision
    frame: Any
    object_count: int


class HistoryBuffer:
    """
    FIFO of withheld frames.

    There is no implicit eviction, the owning smoother decides when to drain it.
    """

    def __init__(self):
        self._records: Deque[FrameRecord] = deque()

    def push(self, decision: CropDecision, frame: Any, object_count: int):
        self._records.append(FrameRecord(decision, frame, object_count))

    def pop_front(self) -> Optional[FrameRecord]:
        """Remove and return the oldest record, None when empty."""
        if not self._records:
            return None
        return self._records.popleft()

    def peek_front(self) -> Optional[FrameRecord]:
        return self._records[0] if self._records else None

    def peek_back(self) -> Optional[FrameRecord]:
        return self._records[-1] if self._records else None

    def drain(self) -> Iterator[FrameRecord]:
        """Pop records oldest first until the buffer is empty."""
        while self._records:
            yield self._records.popleft()

    def is_empty(self) -> bool:
        return not self._records

    def __len__(self):
        return len(self._records)
