"""
=============================================================================
RECORDER CONTROLLER
=============================================================================

The control service does not record anything itself. It drives an object
owned by the host application through the RecorderController contract:

    ┌────────────────────┬─────────┬──────────────────────────────────────┐
    │ Method             │ Kind    │ Meaning                              │
    ├────────────────────┼─────────┼──────────────────────────────────────┤
    │ is_recording()     │ query   │ A session is active (maybe paused)   │
    │ is_paused()        │ query   │ The active session is paused         │
    │ current_file_name()│ query   │ Output file ("" if none)             │
    │ current_file_size()│ query   │ Bytes written so far                 │
    │ total_time()       │ query   │ Recorded milliseconds                │
    │ start()            │ command │ Begin a new session                  │
    │ toggle_pause()     │ command │ Resume if paused, else pause         │
    │ pause()            │ command │ Recording → paused                   │
    │ save(confirm)      │ command │ Finalize the output                  │
    │ cancel(confirm)    │ command │ Discard the output                   │
    └────────────────────┴─────────┴──────────────────────────────────────┘

All methods are synchronous and must not block. Commands are
fire-and-forget: the service answers the client as soon as the command
returns, without waiting for the capture pipeline.

SimulatedRecorder is an in-memory implementation used by the command-line
backend mode and by tests.

=============================================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional
import logging
import time


logger = logging.getLogger(__name__)


class RecorderController(ABC):
    """Contract between the control service and the host's recorder."""

    @abstractmethod
    def is_recording(self) -> bool:
        """True while a session is active, including while paused."""

    @abstractmethod
    def is_paused(self) -> bool:
        """True while the active session is paused."""

    @abstractmethod
    def current_file_name(self) -> str:
        """Output file of the current session, or "" if there is none."""

    @abstractmethod
    def current_file_size(self) -> int:
        """Bytes written to the output so far (may exceed 32 bits)."""

    @abstractmethod
    def total_time(self) -> int:
        """Recorded time in milliseconds, paused intervals excluded."""

    @abstractmethod
    def start(self) -> None:
        """Begin a new recording session."""

    @abstractmethod
    def toggle_pause(self) -> None:
        """Resume if paused, otherwise pause."""

    @abstractmethod
    def pause(self) -> None:
        """Pause the active session."""

    @abstractmethod
    def save(self, confirm: bool) -> None:
        """
        Finalize the output file.

        Args:
            confirm: False means no interactive confirmation prompt.
        """

    @abstractmethod
    def cancel(self, confirm: bool) -> None:
        """
        Discard the current session.

        Args:
            confirm: False means no interactive confirmation prompt.
        """


class SimulatedRecorder(RecorderController):
    """
    In-memory recorder that honours the controller contract.

    No frames are captured. Elapsed time comes from a monotonic clock and
    the "file" grows at a fixed byte rate while not paused, which is enough
    for clients to watch status change.

    Args:
        output_file: File name reported for every session. When None, each
                     session gets recording-YYYYmmdd-HHMMSS.mkv.
        bytes_per_second: Simulated encoder output rate.
        clock: Monotonic clock in seconds (injectable for tests).
    """

    def __init__(
        self,
        output_file: Optional[str] = None,
        bytes_per_second: int = 512 * 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.output_file = output_file
        self.bytes_per_second = bytes_per_second
        self._clock = clock

        self._recording = False
        self._paused = False
        self._file_name = ""

        # Time accumulated by finished segments, and start of the running one
        self._elapsed = 0.0
        self._segment_start: Optional[float] = None

        self.saved_files: list[str] = []

    # ─────────────────────────────────────────────────────────────────────
    # QUERIES
    # ─────────────────────────────────────────────────────────────────────

    def is_recording(self) -> bool:
        return self._recording

    def is_paused(self) -> bool:
        return self._paused

    def current_file_name(self) -> str:
        return self._file_name

    def current_file_size(self) -> int:
        return int(self._elapsed_seconds() * self.bytes_per_second)

    def total_time(self) -> int:
        return int(self._elapsed_seconds() * 1000)

    def _elapsed_seconds(self) -> float:
        if self._segment_start is None:
            return self._elapsed
        return self._elapsed + (self._clock() - self._segment_start)

    # ─────────────────────────────────────────────────────────────────────
    # COMMANDS
    # ─────────────────────────────────────────────────────────────────────

    def start(self) -> None:
        if self._recording:
            logger.warning("start() ignored: already recording")
            return

        self._file_name = self.output_file or datetime.now().strftime(
            "recording-%Y%m%d-%H%M%S.mkv"
        )
        self._recording = True
        self._paused = False
        self._elapsed = 0.0
        self._segment_start = self._clock()
        logger.info(f"Recording started: {self._file_name}")

    def toggle_pause(self) -> None:
        if not self._recording:
            return
        if self._paused:
            self._segment_start = self._clock()
            self._paused = False
            logger.info("Recording resumed")
        else:
            self.pause()

    def pause(self) -> None:
        if not self._recording or self._paused:
            return
        self._elapsed = self._elapsed_seconds()
        self._segment_start = None
        self._paused = True
        logger.info("Recording paused")

    def save(self, confirm: bool) -> None:
        if not self._recording:
            return
        size = self.current_file_size()
        self.saved_files.append(self._file_name)
        logger.info(f"Recording saved: {self._file_name} ({size} bytes)")
        self._reset()

    def cancel(self, confirm: bool) -> None:
        if not self._recording:
            return
        logger.info(f"Recording cancelled: {self._file_name}")
        self._reset()

    def _reset(self) -> None:
        self._recording = False
        self._paused = False
        self._file_name = ""
        self._elapsed = 0.0
        self._segment_start = None
