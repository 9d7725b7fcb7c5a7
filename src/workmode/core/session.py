"""Session dataclass and stopwatch for workmode."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field

RUNNING_ICON = "▶"
PAUSED_ICON = "⏸"


def format_elapsed(ms: float) -> str:
    """Format milliseconds as HH:MM:SS."""
    total = int(max(ms, 0) // 1000)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


@dataclass
class Session:
    """Timing state of one work session.

    Times are seconds from the session clock (monotonic by default).

    Attributes:
        running: Whether a session is in progress
        paused: Whether the stopwatch is on hold
        start_time: Clock value when the session started
        paused_accumulated: Seconds spent in completed pauses
        pause_start_time: Clock value when the current pause began
    """

    running: bool = False
    paused: bool = False
    start_time: float = 0.0
    paused_accumulated: float = 0.0
    pause_start_time: float = 0.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    def __post_init__(self) -> None:
        """Validate session flags."""
        if self.paused and not self.running:
            raise ValueError("Invalid state: a session can only be paused while running")

    def start(self) -> None:
        self.running = True
        self.paused = False
        self.start_time = self.clock()
        self.paused_accumulated = 0.0
        self.pause_start_time = 0.0

    def pause(self) -> None:
        if not self.running or self.paused:
            return
        self.paused = True
        self.pause_start_time = self.clock()

    def resume(self) -> None:
        if not self.running or not self.paused:
            return
        self.paused = False
        self.paused_accumulated += self.clock() - self.pause_start_time
        self.pause_start_time = 0.0

    def toggle_pause(self) -> None:
        if self.paused:
            self.resume()
        else:
            self.pause()

    def elapsed_ms(self) -> int:
        """Milliseconds worked, excluding pauses (the current one included)."""
        if not self.running:
            return 0
        now = self.clock()
        pause_tail = now - self.pause_start_time if self.paused else 0.0
        return max(0, int((now - self.start_time - self.paused_accumulated - pause_tail) * 1000))

    def stop(self) -> int:
        """End the session and return its duration in milliseconds."""
        duration = self.elapsed_ms()
        self.running = False
        self.paused = False
        self.start_time = 0.0
        self.paused_accumulated = 0.0
        self.pause_start_time = 0.0
        return duration

    def status_text(self) -> str:
        icon = PAUSED_ICON if self.paused else RUNNING_ICON
        return f"{icon} {format_elapsed(self.elapsed_ms())}"
