"""
Timer driven cycling through windows of projects

The cycler owns a single cursor into the project list and shows a fixed
size window starting at that cursor. Slots past the end wrap around, so a
window is always full even when there are fewer projects than slots.
"""

import functools
import logging
import math
import threading
from typing import Callable, List, Optional, Dict, Any

from . import config

logger = logging.getLogger(__name__)

RenderCallback = Callable[[List[Dict[str, Any]], str], None]


class EmptyDatasetError(Exception):
    """There are no projects to display."""


class DisplayCycler:
    """
    Cursor, window and timer state for the project display.

    At most one timer is active: every start cancels the previous timer
    first, and a tick from a cancelled timer is ignored.

    Args:
        projects: Project dicts to cycle through (must not be empty)
        window_size: Number of slots shown at once
        cycle_duration: Seconds between automatic advances
        on_render: Called with (window, page_label) whenever the window changes
        on_progress_reset: Called with cycle_duration whenever progress restarts
        on_transition: Called before a timer advance, outside the lock
        timer_factory: threading.Timer compatible constructor
    """

    def __init__(
        self,
        projects: List[Dict[str, Any]],
        window_size: int = config.WINDOW_SIZE,
        cycle_duration: float = config.CYCLE_DURATION,
        on_render: Optional[RenderCallback] = None,
        on_progress_reset: Optional[Callable[[float], None]] = None,
        on_transition: Optional[Callable[[], None]] = None,
        timer_factory=threading.Timer,
    ):
        if not projects:
            raise EmptyDatasetError("No projects found to display.")
        if window_size < 1:
            raise ValueError(f"window_size must be positive, got {window_size}")

        self.projects = list(projects)
        self.window_size = window_size
        self.cycle_duration = cycle_duration
        self.on_render = on_render
        self.on_progress_reset = on_progress_reset
        self.on_transition = on_transition
        self.timer_factory = timer_factory

        self.cursor = 0
        self.progress_resets = 0
        self._timer = None
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def running(self) -> bool:
        return self._timer is not None

    def window_indices(self, start: Optional[int] = None) -> List[int]:
        start = self.cursor if start is None else start
        total = len(self.projects)
        return [(start + slot) % total for slot in range(self.window_size)]

    def current_window(self) -> List[Dict[str, Any]]:
        return [self.projects[index] for index in self.window_indices()]

    def page_label(self) -> str:
        current_page = self.cursor // self.window_size + 1
        total_pages = math.ceil(len(self.projects) / self.window_size)
        return f"{current_page} / {total_pages}"

    def render(self):
        logger.debug(f"Displaying projects starting from index {self.cursor} (with wraparound)")
        if self.on_render:
            self.on_render(self.current_window(), self.page_label())

    def reset_progress(self):
        self.progress_resets += 1
        if self.on_progress_reset:
            self.on_progress_reset(self.cycle_duration)

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule(self):
        self._cancel_timer()
        self._generation += 1
        timer = self.timer_factory(self.cycle_duration, functools.partial(self._tick, self._generation))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _tick(self, generation: int):
        if generation != self._generation:
            return
        if self.on_transition:
            self.on_transition()
        with self._lock:
            if generation != self._generation or self._timer is None:
                return
            self.advance()
            self._schedule()

    def start(self):
        """Show the current window and (re)start automatic cycling."""
        with self._lock:
            logger.info("Starting project cycle...")
            self._cancel_timer()
            self.render()
            self._schedule()
            self.reset_progress()

    def stop(self):
        with self._lock:
            self._cancel_timer()

    def advance(self):
        """Move to the next window, back to the start once past the end."""
        with self._lock:
            self.cursor += self.window_size
            if self.cursor >= len(self.projects):
                self.cursor = 0
            self.render()
            self.reset_progress()

    def _after_manual_move(self):
        if self.running:
            self.start()
        else:
            self.render()
            self.reset_progress()

    def next(self):
        """Manual jump forward by one window; restarts the timer if running."""
        with self._lock:
            self.cursor += self.window_size
            if self.cursor >= len(self.projects):
                self.cursor = 0
            self._after_manual_move()

    def previous(self):
        """Manual jump back by one window; restarts the timer if running."""
        with self._lock:
            self.cursor -= self.window_size
            if self.cursor < 0:
                self.cursor = max(0, len(self.projects) - self.window_size)
            self._after_manual_move()

    def set_hidden(self, hidden: bool):
        """Pause while the display is hidden, resume when it is shown again."""
        with self._lock:
            if hidden:
                self.stop()
                logger.info("Project cycling paused (display hidden)")
            elif not self.running:
                self.start()
                logger.info("Project cycling resumed (display visible)")
