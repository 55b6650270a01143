"""Local terminal handling: raw mode and window size monitoring."""

import os
import queue
import signal
import sys
import termios
import threading
import tty
from contextlib import contextmanager
from typing import Callable, Iterator, TextIO

from kdebug.config import RESIZE_POLL_INTERVAL
from kdebug.errors import StreamError, TeardownWarning
from kdebug.types import TerminalDimensions
from kdebug.ui import print_warning

# Room for the initial sample plus one resize so the first value is never lost
_QUEUE_CAPACITY = 2
# How often a blocked producer re-checks for cancellation
_PUT_RETRY = 0.5


@contextmanager
def raw_terminal(
    stream: TextIO = sys.stdin, warnings: list[TeardownWarning] | None = None
) -> Iterator[None]:
    """Put the terminal behind ``stream`` into raw mode for the block.

    The saved attributes are restored on every exit path. A restore failure
    never raises: it is appended to ``warnings`` when given, so the caller can
    report it after any primary error, and printed otherwise.
    """
    try:
        fd = stream.fileno()
        saved = termios.tcgetattr(fd)
        tty.setraw(fd)
    except (termios.error, OSError, ValueError) as e:
        raise StreamError(f"stdin is not an interactive terminal: {e}") from e

    try:
        yield
    finally:
        try:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)
        except (termios.error, OSError) as e:
            warning = TeardownWarning(
                "failed to restore terminal settings, use the reset command "
                f"to fix: {e}"
            )
            if warnings is None:
                print_warning(str(warning))
            else:
                warnings.append(warning)


class TerminalSizeMonitor:
    """Samples the terminal size and hands it to a single consumer.

    The first sample is taken synchronously by ``start()``; after that a
    daemon thread re-samples every ``interval`` seconds until cancelled.
    Where SIGWINCH exists and the monitor is started from the main thread, a
    window-change wakes the thread early instead of waiting for the next poll.
    """

    def __init__(
        self,
        fd: int = 0,
        interval: float = RESIZE_POLL_INTERVAL,
        get_size: Callable[[int], os.terminal_size] = os.get_terminal_size,
    ):
        self._fd = fd
        self._interval = interval
        self._get_size = get_size
        self._queue: queue.Queue[TerminalDimensions] = queue.Queue(
            maxsize=_QUEUE_CAPACITY
        )
        self._stop = threading.Event()
        self._wake = threading.Event()
        self._closed = threading.Event()
        self._thread: threading.Thread | None = None
        self._previous_handler = None
        self._handler_installed = False
        self._cancel_lock = threading.Lock()
        self._cancelled = False

    def __enter__(self) -> "TerminalSizeMonitor":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self) -> "TerminalSizeMonitor":
        if self._thread is not None:
            return self
        try:
            self._put(self._sample())
        except OSError as e:
            raise StreamError(f"could not read terminal size: {e}") from e

        self._install_resize_handler()
        self._thread = threading.Thread(
            target=self._run, name="kdebug-resize-monitor", daemon=True
        )
        self._thread.start()
        return self

    def cancel(self) -> None:
        """Ask the producer to stop. Safe to call more than once."""
        with self._cancel_lock:
            if self._cancelled:
                return
            self._cancelled = True
        self._stop.set()
        self._wake.set()
        self._restore_resize_handler()

    def close(self) -> None:
        """Cancel the producer and signal end-of-stream to the consumer."""
        self.cancel()
        self._closed.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def poll(self) -> TerminalDimensions | None:
        """Return a pending sample without blocking, or None."""
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def next(self, timeout: float | None = None) -> TerminalDimensions | None:
        """Block for the next sample. None on end-of-stream or timeout."""
        remaining = timeout
        while True:
            if self.closed and self._queue.empty():
                return None
            wait = _PUT_RETRY if remaining is None else min(_PUT_RETRY, remaining)
            try:
                return self._queue.get(timeout=wait)
            except queue.Empty:
                if remaining is not None:
                    remaining -= wait
                    if remaining <= 0:
                        return None

    def _sample(self) -> TerminalDimensions:
        size = self._get_size(self._fd)
        return TerminalDimensions.clamped(columns=size.columns, rows=size.lines)

    def _put(self, dims: TerminalDimensions) -> bool:
        # Blocks while the consumer is behind, but never past a cancel
        while not self._stop.is_set():
            try:
                self._queue.put(dims, timeout=_PUT_RETRY)
                return True
            except queue.Full:
                continue
        return False

    def _run(self) -> None:
        while True:
            self._wake.wait(self._interval)
            self._wake.clear()
            if self._stop.is_set():
                return
            try:
                dims = self._sample()
            except OSError:
                # Terminal went away; the consumer keeps the last size
                return
            if not self._put(dims):
                return

    def _install_resize_handler(self) -> None:
        if not hasattr(signal, "SIGWINCH"):
            return
        if threading.current_thread() is not threading.main_thread():
            return
        self._previous_handler = signal.signal(
            signal.SIGWINCH, lambda signum, frame: self._wake.set()
        )
        self._handler_installed = True

    def _restore_resize_handler(self) -> None:
        if not self._handler_installed:
            return
        if threading.current_thread() is threading.main_thread():
            signal.signal(signal.SIGWINCH, self._previous_handler or signal.SIG_DFL)
        self._handler_installed = False
