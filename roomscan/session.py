"""
Scan Session Controller

Drives the pipeline across one scan's lifecycle:

    idle --start()--> scanning --stop()--> stopped
                         |
                         +--abort()--> idle

While scanning, each tick drains new frames into an append-only point
buffer, runs the pipeline over a decimated snapshot and emits a
streaming update. stop() runs the pipeline once more over the full
buffer and returns the final result. A stopped session is terminal.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple
import numpy as np
from rich.console import Console

from utils.geometry import VertexInput, as_points, read_only
from utils.validation import ScanResult, ScanUpdate
from .classify import MAX_TICK_POINTS, decimate_points
from .models import FurnitureObject, RoomLayout, SessionState, WallSegment
from .process import PipelineConfig, PipelineResult, run_pipeline
from .sources import PointSource, ScanError, SensorUnavailableError

console = Console()

TICK_INTERVAL = 0.5  # seconds

Listener = Callable[[ScanUpdate], None]


class UnsupportedDeviceError(ScanError):
    """The capability check failed or was never run."""
    pass


class SessionStateError(ScanError):
    """A lifecycle call was made in a state that does not allow it."""
    pass


@dataclass
class SessionConfig:
    """Configuration for a scan session."""
    tick_interval: float = TICK_INTERVAL
    max_tick_points: int = MAX_TICK_POINTS
    decimation_step: Optional[int] = None  # None = adaptive
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)


class PointBuffer:
    """
    Append-only point store.

    Each append bumps `version`; snapshot() returns a read-only array of
    everything appended so far, cached until the next append.
    """

    def __init__(self):
        self._chunks: List[np.ndarray] = []
        self._count = 0
        self._version = 0
        self._cache: Optional[Tuple[int, np.ndarray]] = None
        self._lock = threading.Lock()

    def append(self, vertices: VertexInput) -> int:
        points = as_points(vertices)
        with self._lock:
            if len(points) > 0:
                self._chunks.append(read_only(np.array(points, dtype=np.float64)))
                self._count += len(points)
                self._version += 1
            return self._version

    def snapshot(self) -> Tuple[int, np.ndarray]:
        with self._lock:
            if self._cache is None or self._cache[0] != self._version:
                if self._chunks:
                    merged = np.concatenate(self._chunks)
                else:
                    merged = np.empty((0, 3), dtype=np.float64)
                self._cache = (self._version, read_only(merged))
            return self._cache

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return self._count


class ScanSession:
    """
    One scan over one point source.

    Args:
        source: Point source to read frames from
        config: Session configuration
        clock: Returns wall-clock seconds; used for scanTimeMillis
    """

    def __init__(
        self,
        source: PointSource,
        config: Optional[SessionConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.config = config or SessionConfig()
        self.clock = clock

        self._state = SessionState.IDLE
        self._supported: Optional[bool] = None
        self._buffer = PointBuffer()
        self._listeners: List[Listener] = []
        self._sequence = 0
        self._latest: Optional[PipelineResult] = None
        self._result: Optional[ScanResult] = None
        self._result_delivered = False
        self._starting = False

        # Lock order: _tick_lock before _state_lock
        self._tick_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop_requested = threading.Event()

    # ── Public state ─────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def sequence(self) -> int:
        """Number of streaming updates emitted so far."""
        return self._sequence

    @property
    def point_count(self) -> int:
        """Raw points accumulated in the buffer."""
        return len(self._buffer)

    @property
    def latest_layout(self) -> Optional[RoomLayout]:
        return self._latest.layout if self._latest else None

    @property
    def latest_furniture(self) -> Tuple[FurnitureObject, ...]:
        return self._latest.furniture if self._latest else ()

    @property
    def latest_walls(self) -> Tuple[WallSegment, ...]:
        return self._latest.walls if self._latest else ()

    @property
    def result(self) -> Optional[ScanResult]:
        return self._result

    def add_listener(self, listener: Listener):
        """
        Register a callback for updates and the final result.

        Listeners run on the ticking thread while the tick is in progress,
        so they must not call stop() or abort() themselves.
        """
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        self._listeners.remove(listener)

    # ── Lifecycle ────────────────────────────────────────────────────

    def check_support(self) -> bool:
        """Run the source capability check; start() requires a True answer."""
        self._supported = bool(self.source.is_scan_supported())
        return self._supported

    def start(self):
        """
        Begin scanning.

        Raises:
            UnsupportedDeviceError: capability check missing or negative
            SensorUnavailableError: the source could not be acquired
            SessionStateError: already scanning or starting, or the session has stopped
        """
        with self._state_lock:
            if self._state is SessionState.SCANNING or self._starting:
                raise SessionStateError("Scan already in progress")
            if self._state is SessionState.STOPPED:
                raise SessionStateError("Session has stopped; create a new session to scan again")
            if not self._supported:
                console.print("[bold red]Depth scanning is not supported on this device[/bold red]")
                raise UnsupportedDeviceError(
                    "Depth scanning is not supported on this device"
                    if self._supported is False
                    else "Capability check has not confirmed scanning support"
                )

            self._starting = True

        # Acquiring the sensor may block on hardware or a permission prompt;
        # stop() and abort() see an idle session until it returns
        try:
            self.source.open()
        except BaseException as e:
            with self._state_lock:
                self._starting = False
            if isinstance(e, SensorUnavailableError):
                console.print(f"[bold red]Could not acquire point source:[/bold red] {e}")
            raise

        with self._state_lock:
            self._starting = False
            self._buffer = PointBuffer()
            self._sequence = 0
            self._latest = None
            self._stop_requested.clear()
            self._state = SessionState.SCANNING

        console.print("[blue]Scan started[/blue]")

    def tick(self) -> Optional[ScanUpdate]:
        """
        Run one streaming pass.

        Returns the emitted update, or None when the session is not
        scanning, a stop is pending, or the sensor was lost during this
        tick (the session is then stopped with a failure result).
        """
        with self._tick_lock:
            if self._state is not SessionState.SCANNING or self._stop_requested.is_set():
                return None

            try:
                self._drain()
            except SensorUnavailableError as e:
                console.print(f"[bold red]Sensor lost mid-scan:[/bold red] {e}")
                self._finalize(status="stopped", error=str(e))
                return None

            _, snapshot = self._buffer.snapshot()
            points = decimate_points(
                snapshot,
                max_points=self.config.max_tick_points,
                step=self.config.decimation_step,
            )
            result = run_pipeline(points, self.config.pipeline)

            # An in-flight tick finishes but stop() reports instead
            if self._stop_requested.is_set():
                return None

            self._latest = result
            self._sequence += 1
            update = result.to_update(status="scanning", scan_time_millis=self._now_millis())
            self._emit(update)
            return update

    def stop(self) -> ScanResult:
        """
        Finish the scan over the full, non-decimated point buffer.

        After a mid-scan sensor loss this returns the stored failure
        result once. Any further call raises SessionStateError.
        """
        with self._state_lock:
            if self._state is SessionState.STOPPED:
                return self._deliver_stored()
            if self._state is not SessionState.SCANNING:
                raise SessionStateError("No scan in progress")
            self._stop_requested.set()

        with self._tick_lock:
            if self._state is SessionState.STOPPED:
                with self._state_lock:
                    return self._deliver_stored()
            if self._state is not SessionState.SCANNING:
                # An abort() won the tick lock first
                raise SessionStateError("No scan in progress")

            error = None
            try:
                self._drain()
            except SensorUnavailableError as e:
                console.print(f"[yellow]Sensor lost while stopping:[/yellow] {e}")
                error = str(e)

            result = self._finalize(status="completed" if error is None else "stopped", error=error)
            self._result_delivered = True
            return result

    def abort(self) -> bool:
        """
        Stop without finalizing, discarding partial results.

        Returns True if a running scan was aborted.
        """
        with self._state_lock:
            if self._state is not SessionState.SCANNING:
                return False
            self._stop_requested.set()

        with self._tick_lock:
            if self._state is not SessionState.SCANNING:
                return False
            self.source.close()
            self._buffer = PointBuffer()
            self._latest = None
            with self._state_lock:
                self._state = SessionState.IDLE

        console.print("[yellow]Scan aborted, partial results discarded[/yellow]")
        return True

    # ── Internals ────────────────────────────────────────────────────

    def _drain(self):
        for frame in self.source.read_frames():
            self._buffer.append(frame.vertices)

    def _finalize(self, status: str, error: Optional[str] = None) -> ScanResult:
        """Run the full pass, release the source and enter STOPPED. Caller holds _tick_lock."""
        _, snapshot = self._buffer.snapshot()
        final = run_pipeline(snapshot, self.config.pipeline)
        self.source.close()

        self._latest = final
        result = final.to_result(status=status, scan_time_millis=self._now_millis(), error=error)
        with self._state_lock:
            self._result = result
            self._result_delivered = False
            self._state = SessionState.STOPPED

        if error is None:
            console.print(f"[green]Scan completed: {final.point_count} points, "
                          f"{len(final.walls)} walls, {len(final.furniture)} furniture[/green]")
        else:
            console.print(f"[yellow]Scan stopped with {final.point_count} points "
                          f"after failure: {error}[/yellow]")

        self._emit(result)
        return result

    def _deliver_stored(self) -> ScanResult:
        """Hand out a stored result once. Caller holds _state_lock."""
        if self._result is None or self._result_delivered:
            raise SessionStateError("Scan already stopped")
        self._result_delivered = True
        return self._result

    def _emit(self, update: ScanUpdate):
        for listener in list(self._listeners):
            listener(update)

    def _now_millis(self) -> float:
        return self.clock() * 1000.0


class ScanLoop:
    """
    Calls session.tick() on a background thread.

    The next tick is scheduled `interval` seconds after the previous one
    finishes, so a slow tick delays the next instead of overlapping it.
    """

    def __init__(self, session: ScanSession, interval: Optional[float] = None):
        self.session = session
        self.interval = session.config.tick_interval if interval is None else interval
        self._halt = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_error: Optional[Exception] = None

    def start(self):
        self.session.start()
        self._halt.clear()
        self._thread = threading.Thread(target=self._run, name="scan-tick", daemon=True)
        self._thread.start()

    def _run(self):
        while not self._halt.wait(self.interval):
            if self.session.state is not SessionState.SCANNING:
                break
            try:
                self.session.tick()
            except Exception as e:
                # A failing listener must not end the tick loop
                self.last_error = e
                console.print(f"[red]Scan tick failed:[/red] {e}")

    def stop(self) -> ScanResult:
        self._halt.set()
        try:
            return self.session.stop()
        finally:
            self._join()

    def abort(self) -> bool:
        self._halt.set()
        try:
            return self.session.abort()
        finally:
            self._join()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _join(self):
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
            self._thread = None
