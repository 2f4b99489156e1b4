"""
Status change notifiers.

A notifier reports which profile the live configuration matches after a
change. The concrete notifier is chosen once at startup by
``create_notifier`` from the settings and the capabilities of the output
stream; nothing else branches on how notifications are shown.
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import Dict, Optional, TextIO

from ..models.profiles import StatusKind
from .event_dispatcher import StatusSnapshot

logger = logging.getLogger(__name__)


def summarize(snapshot: StatusSnapshot) -> str:
    """One-line description of which profiles the live configuration matches."""
    full = [p.name for p, s in snapshot.items() if s.kind is StatusKind.FULL_MATCH]
    partial = [p.name for p, s in snapshot.items() if s.kind is StatusKind.PARTIAL_MATCH]
    errors = [p.name for p, s in snapshot.items() if s.is_error]

    if full:
        text = f"Live configuration matches {', '.join(full)}"
    elif partial:
        text = f"Live configuration partially matches {', '.join(partial)}"
    else:
        text = "Live configuration matches no profile"
    if errors:
        text += f" ({len(errors)} profile(s) unreadable: {', '.join(errors)})"
    return text


class StatusNotifier(ABC):
    """Receives every status snapshot and decides whether to report it."""

    def __init__(self):
        self._last: Optional[Dict[str, StatusKind]] = None

    def __call__(self, snapshot: StatusSnapshot) -> None:
        kinds = {p.name: s.kind for p, s in snapshot.items()}
        if kinds == self._last:
            return
        self._last = kinds
        self.notify(summarize(snapshot), snapshot)

    @abstractmethod
    def notify(self, message: str, snapshot: StatusSnapshot) -> None:
        """Report a status change."""


class SilentNotifier(StatusNotifier):
    """Used when notifications are turned off; changes are only debug-logged."""

    def notify(self, message: str, snapshot: StatusSnapshot) -> None:
        logger.debug(message)


class LogNotifier(StatusNotifier):
    """Reports changes through the logging system."""

    def notify(self, message: str, snapshot: StatusSnapshot) -> None:
        logger.info(message)


class ConsoleNotifier(StatusNotifier):
    """Prints a status line per profile to an interactive terminal."""

    def __init__(self, stream: TextIO):
        super().__init__()
        self.stream = stream

    def notify(self, message: str, snapshot: StatusSnapshot) -> None:
        print(message, file=self.stream)
        for profile, status in snapshot.items():
            icon = status.icon or " "
            detail = f"  {status.reason}" if status.reason else ""
            print(f"  {icon} {profile.name}{detail}", file=self.stream)
        self.stream.flush()


def create_notifier(show_notifications: bool, stream: Optional[TextIO] = None) -> StatusNotifier:
    """
    Pick the notifier for this process.

    Args:
        show_notifications: User setting; False selects the silent notifier
        stream: Output stream, defaults to stdout. A TTY gets the console
            notifier, anything else is reported through logging.
    """
    if not show_notifications:
        return SilentNotifier()

    stream = stream or sys.stdout
    isatty = getattr(stream, "isatty", None)
    if isatty is not None and isatty():
        return ConsoleNotifier(stream)
    return LogNotifier()
