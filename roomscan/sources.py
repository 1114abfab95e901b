"""
Point Sources

A point source wraps the depth sensor session and hands out raw vertex
frames. Acquiring the source is the only operation in the package that
may block on hardware or permission grants.
"""

import math
import threading
from typing import Iterable, List, Optional, Protocol, runtime_checkable

from utils.validation import Frame, ScanExport


class ScanError(Exception):
    """Base error for scan session failures."""
    pass


class SensorUnavailableError(ScanError):
    """The point source could not be acquired or was lost mid-scan."""
    pass


@runtime_checkable
class PointSource(Protocol):
    def is_scan_supported(self) -> bool:
        """Whether this device can produce depth point clouds."""
        ...

    def open(self) -> None:
        """Acquire the sensor. Raises SensorUnavailableError on failure."""
        ...

    def read_frames(self) -> List[Frame]:
        """Return frames captured since the previous call (possibly none)."""
        ...

    def close(self) -> None:
        ...


class ReplayPointSource:
    """
    Replays prerecorded frames, one per read.

    Args:
        frames: Frames to deliver in order
        supported: Answer for the capability check
        fail_on_open: Raise SensorUnavailableError from open()
        fail_after: Raise SensorUnavailableError once this many reads succeeded
    """

    def __init__(
        self,
        frames: Iterable[Frame],
        supported: bool = True,
        fail_on_open: bool = False,
        fail_after: Optional[int] = None,
    ):
        self._frames = list(frames)
        self._position = 0
        self._reads = 0
        self._open = False
        self._lock = threading.Lock()
        self.supported = supported
        self.fail_on_open = fail_on_open
        self.fail_after = fail_after

    @classmethod
    def from_export(cls, document: ScanExport, chunks: int = 5, **kwargs) -> "ReplayPointSource":
        """Split an export document's points into `chunks` frames."""
        total = len(document.points) // 3
        chunks = max(1, chunks)
        per_chunk = max(1, math.ceil(total / chunks))
        start_time = document.metadata.scan_time

        frames = []
        for i, start in enumerate(range(0, total, per_chunk)):
            end = min(total, start + per_chunk)
            frames.append(Frame(
                vertices=document.points[start * 3:end * 3],
                frame_timestamp=start_time + i * 500.0,
            ))
        return cls(frames, **kwargs)

    def is_scan_supported(self) -> bool:
        return self.supported

    def open(self) -> None:
        if self.fail_on_open:
            raise SensorUnavailableError("Depth sensor could not be acquired")
        with self._lock:
            self._open = True

    def read_frames(self) -> List[Frame]:
        with self._lock:
            if not self._open:
                raise SensorUnavailableError("Point source is not open")
            if self.fail_after is not None and self._reads >= self.fail_after:
                self._open = False
                raise SensorUnavailableError(f"Depth sensor lost after {self._reads} reads")

            self._reads += 1
            if self._position >= len(self._frames):
                return []
            frame = self._frames[self._position]
            self._position += 1
            return [frame]

    def has_pending(self) -> bool:
        with self._lock:
            return self._position < len(self._frames)

    @property
    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        with self._lock:
            self._open = False
