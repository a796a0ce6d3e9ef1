"""Exclusive ownership of the camera device."""
from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

_ids = itertools.count(1)
_open_handles: set[int] = set()
_registry_lock = threading.Lock()


class Capture(Protocol):
    def read(self) -> Tuple[bool, Any]: ...

    def release(self) -> None: ...


def open_handle_count() -> int:
    """Number of handles created and not yet released in this process."""

    with _registry_lock:
        return len(_open_handles)


class AcquisitionHandle:
    """Wraps a capture device; the device is released exactly once.

    Reads run in executor threads, so ``read`` and ``release`` share a lock and
    a release never interleaves with an in-flight frame grab.
    """

    def __init__(self, capture: Capture) -> None:
        self.handle_id = next(_ids)
        self._capture: Optional[Capture] = capture
        self._lock = threading.Lock()
        with _registry_lock:
            _open_handles.add(self.handle_id)
        logger.debug("Acquisition handle %s opened", self.handle_id)

    @property
    def released(self) -> bool:
        return self._capture is None

    def read(self) -> Tuple[bool, Any]:
        with self._lock:
            if self._capture is None:
                return False, None
            return self._capture.read()

    def release(self) -> bool:
        """Release the device. Returns False when it was already released."""

        with self._lock:
            capture, self._capture = self._capture, None
        if capture is None:
            return False
        try:
            capture.release()
        finally:
            with _registry_lock:
                _open_handles.discard(self.handle_id)
            logger.info("Acquisition handle %s released", self.handle_id)
        return True


__all__ = ["AcquisitionHandle", "Capture", "open_handle_count"]
