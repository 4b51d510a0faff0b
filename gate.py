"""
Discord AutoReply - Debounce/Cooldown Gate
The armed/busy flag pair that keeps at most one reply cycle in flight.
"""

import time
from typing import Optional

from constants import ERROR_ALERT_INTERVAL
from history import ChatMessage


class ReplyGate:
    """Armed/busy state for one controller.

    ``armed`` only changes on explicit user action. ``busy`` is set when a
    qualifying message starts a cycle and cleared after that cycle's cooldown.
    Relies on a single event loop: check-and-set in try_acquire() has no await
    between the check and the set.
    """

    def __init__(self):
        self.armed = False
        self.busy = False
        self.active_channel_id = None

    def toggle(self) -> bool:
        """Flip armed and return the new value."""
        self.armed = not self.armed
        return self.armed

    def focus(self, channel_id):
        """Update the active conversation reference."""
        self.active_channel_id = channel_id

    def rejection_reason(self, message: ChatMessage, self_id, enabled: bool = True) -> Optional[str]:
        """Why ``message`` must not start a cycle, or None if it qualifies."""
        if not enabled:
            return "disabled"
        if not message.author_id:
            return "no_author"
        if message.author_id == self_id:
            return "own_message"
        if message.channel_id != self.active_channel_id:
            return "inactive_channel"
        if not self.armed:
            return "disarmed"
        if not message.content or not message.content.strip():
            return "empty"
        if self.busy:
            return "busy"
        return None

    def try_acquire(self, message: ChatMessage, self_id, enabled: bool = True) -> Optional[str]:
        """Set busy if ``message`` qualifies. Returns the rejection reason otherwise."""
        reason = self.rejection_reason(message, self_id, enabled)
        if reason is None:
            self.busy = True
        return reason

    def release(self):
        self.busy = False

    def reset(self):
        """Back to the freshly constructed state (used on stop)."""
        self.armed = False
        self.busy = False
        self.active_channel_id = None


class AlertThrottle:
    """Allows one alert per ``interval`` seconds."""

    def __init__(self, interval: float = ERROR_ALERT_INTERVAL, clock=time.monotonic):
        self.interval = interval
        self._clock = clock
        self._last_shown: Optional[float] = None

    def allow(self) -> bool:
        now = self._clock()
        if self._last_shown is not None and now - self._last_shown < self.interval:
            return False
        self._last_shown = now
        return True
