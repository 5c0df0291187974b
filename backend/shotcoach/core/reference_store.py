"""
Reference image handoff between screens.

One screen offers an image URI (a reference photo to match, or an
inspiration photo picked from the feed); the camera screen consumes it once.
Consuming clears the slot so the image is applied a single time.

The store also keeps the analysis of the active reference photo, which
stays in effect for every shot critique until it is replaced or cleared.
"""
import logging
import threading
from enum import Enum
from typing import Dict, Optional
from shotcoach.schemas.reference import ReferenceAnalysis

logger = logging.getLogger(__name__)


class HandoffSlot(str, Enum):
    REFERENCE = "reference"
    INSPIRATION = "inspiration"


class ReferenceImageStore:
    def __init__(self):
        self._pending: Dict[HandoffSlot, str] = {}
        self._analysis: Optional[ReferenceAnalysis] = None
        self._lock = threading.Lock()

    def offer(self, slot: HandoffSlot, uri: str) -> None:
        """Set the pending URI for a slot, replacing any unconsumed one."""
        with self._lock:
            replaced = self._pending.get(slot)
            self._pending[slot] = uri
        if replaced is not None:
            logger.info(f"Replaced unconsumed {slot.value} image {replaced}")

    def consume(self, slot: HandoffSlot) -> Optional[str]:
        """Return the pending URI for a slot and clear it."""
        with self._lock:
            return self._pending.pop(slot, None)

    def peek(self, slot: HandoffSlot) -> Optional[str]:
        with self._lock:
            return self._pending.get(slot)

    def set_analysis(self, analysis: Optional[ReferenceAnalysis]) -> None:
        with self._lock:
            self._analysis = analysis

    def analysis(self) -> Optional[ReferenceAnalysis]:
        with self._lock:
            return self._analysis

    def clear(self) -> None:
        with self._lock:
            self._pending.clear()
            self._analysis = None


handoff_store = ReferenceImageStore()
