from __future__ import annotations
"""
Focus Monitor

Tab-visibility and window-focus tracking. Browser events reach the monitor
through an injected FocusSource, so the accounting is testable without a
browser.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from examguard.engine.accumulator import ViolationAccumulator
from examguard.utils.logger import get_logger
from examguard.utils.violations import ViolationKind

logger = get_logger(__name__)

HiddenCallback = Callable[[ViolationKind], None]
VisibleCallback = Callable[[], None]
Unsubscribe = Callable[[], None]


class FocusSource(ABC):
    """
    Delivers attention transitions.

    Hidden callbacks receive ``tab_switch`` (document hidden) or
    ``window_blur`` (window lost focus). Each registration returns a
    callable that removes it.
    """

    @abstractmethod
    def on_hidden(self, callback: HiddenCallback) -> Unsubscribe:
        """Register for tab-hidden / window-blur transitions."""

    @abstractmethod
    def on_visible(self, callback: VisibleCallback) -> Unsubscribe:
        """Register for tab-visible / window-focus transitions."""


class ManualFocusSource(FocusSource):
    """
    Focus source driven by the host.

    The host forwards browser events (``visibilitychange``, ``blur``,
    ``focus``) as method calls; handlers run synchronously with no
    debouncing.
    """

    def __init__(self):
        self._hidden: list[HiddenCallback] = []
        self._visible: list[VisibleCallback] = []

    def on_hidden(self, callback: HiddenCallback) -> Unsubscribe:
        self._hidden.append(callback)
        return lambda: self._remove(self._hidden, callback)

    def on_visible(self, callback: VisibleCallback) -> Unsubscribe:
        self._visible.append(callback)
        return lambda: self._remove(self._visible, callback)

    def visibility_changed(self, hidden: bool):
        if hidden:
            self._emit_hidden(ViolationKind.TAB_SWITCH)
        else:
            self._emit_visible()

    def blur(self):
        self._emit_hidden(ViolationKind.WINDOW_BLUR)

    def focus(self):
        self._emit_visible()

    def _emit_hidden(self, kind: ViolationKind):
        for callback in list(self._hidden):
            callback(kind)

    def _emit_visible(self):
        for callback in list(self._visible):
            callback()

    @staticmethod
    def _remove(callbacks: list, callback):
        if callback in callbacks:
            callbacks.remove(callback)


class FocusMonitor:
    """
    Feeds focus transitions into a ViolationAccumulator.

    Losing focus always marks the tab unfocused, but only counts as a
    violation while the camera is on and the session is not disqualified.
    Regaining focus never reduces the count.
    """

    def __init__(self, accumulator: ViolationAccumulator):
        self.accumulator = accumulator
        self.source: Optional[FocusSource] = None
        self._unsubscribers: list[Unsubscribe] = []

    def attach(self, source: FocusSource):
        """Subscribe to a focus source, replacing any previous one."""
        self.detach()
        self.source = source
        self._unsubscribers = [
            source.on_hidden(self.handle_hidden),
            source.on_visible(self.handle_visible),
        ]

    def detach(self):
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.source = None

    def handle_hidden(self, kind: ViolationKind):
        if not self.accumulator.focus_lost(kind):
            logger.debug(f"Focus lost ({ViolationKind(kind).value}) not counted")

    def handle_visible(self):
        self.accumulator.focus_regained()
