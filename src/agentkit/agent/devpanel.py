"""
Developer panel for inspecting agent execution.

When enabled, the tool-call loop records ``config``, ``message``, ``tool_call``, ``response`` and
``error`` events here.  Events are also forwarded to the ``agentkit.devpanel`` logger, and
:meth:`DevPanel.show` prints a summary of everything recorded so far.
"""

import json
import logging
from datetime import datetime
from typing import (
    Any,
    List,
    Literal,
)

from pydantic import (
    BaseModel,
    Field,
)

from agentkit.common import (
    AnsiColors,
    colored_print,
)
from agentkit.config import settings

logger = logging.getLogger("agentkit.devpanel")

EventType = Literal["config", "message", "tool_call", "response", "error"]
LogLevel = Literal["verbose", "normal", "minimal"]

_ICONS = {
    "config": "🔧",
    "message": "💬",
    "tool_call": "🔨",
    "response": "✅",
    "error": "❌",
}


class DevPanelEvent(BaseModel):
    """A single recorded event."""

    type: EventType
    data: Any = None
    timestamp: datetime = Field(default_factory=datetime.now)


class DevPanel:
    """Collects execution events.  Disabled panels ignore everything."""

    def __init__(
        self,
        enabled: bool | None = None,
        log_level: LogLevel = "normal",
        show_timestamps: bool = True,
    ):
        self.enabled = settings.DEV_PANEL if enabled is None else enabled
        self.log_level = log_level
        self.show_timestamps = show_timestamps
        self._events: List[DevPanelEvent] = []

    def log(self, event_type: EventType, data: Any = None) -> None:
        """Record an event if the panel is enabled."""
        if not self.enabled:
            return
        if event_type == "config" and self.log_level == "minimal":
            return

        event = DevPanelEvent(type=event_type, data=data)
        self._events.append(event)
        if event_type == "error":
            logger.error("%s %s: %s", _ICONS[event_type], event_type, data)
        else:
            logger.info("%s %s: %s", _ICONS[event_type], event_type, data)

    @property
    def events(self) -> List[DevPanelEvent]:
        """A copy of the recorded events."""
        return list(self._events)

    def clear(self) -> None:
        self._events = []

    def show(self) -> None:
        """Print every recorded event."""
        if not self.enabled:
            colored_print("❌ Dev Panel is not enabled", AnsiColors.RED)
            return

        colored_print("\n══════════════ AgentKit Developer Panel ══════════════\n", AnsiColors.CYAN)
        if not self._events:
            print("  No events logged yet.\n")
            return

        print(f"  Total Events: {len(self._events)}\n")
        for index, event in enumerate(self._events, start=1):
            label = event.timestamp.strftime("%H:%M:%S") if self.show_timestamps else f"#{index}"
            print(f"  [{label}] {_ICONS[event.type]} {event.type}")
            if self.log_level == "verbose":
                print("    Data:", json.dumps(event.data, indent=2, default=str))
        colored_print("\n══════════════════════════════════════════════════════\n", AnsiColors.CYAN)


_GLOBAL_PANEL: DevPanel | None = None


def init_dev_panel(
    enabled: bool | None = None, log_level: LogLevel = "normal", show_timestamps: bool = True
) -> DevPanel:
    """Replace the process-wide panel and return it."""
    global _GLOBAL_PANEL  # pylint: disable=global-statement
    _GLOBAL_PANEL = DevPanel(enabled=enabled, log_level=log_level, show_timestamps=show_timestamps)
    return _GLOBAL_PANEL


def get_dev_panel() -> DevPanel:
    """Return the process-wide panel, creating a default one on first use."""
    global _GLOBAL_PANEL  # pylint: disable=global-statement
    if _GLOBAL_PANEL is None:
        _GLOBAL_PANEL = DevPanel()
    return _GLOBAL_PANEL
