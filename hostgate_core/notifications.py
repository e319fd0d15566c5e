"""Notification sinks that need no UI toolkit."""

import logging

from .interfaces import NotificationSink

logger = logging.getLogger(__name__)


class LoggingNotificationSink:
    """Writes every status line to the log. Default when no UI is attached."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def notify(self, text: str) -> None:
        logger.log(self.level, f"update-status: {text}")


class FanoutNotificationSink:
    """Delivers each status line to several sinks in order."""

    def __init__(self, *sinks: NotificationSink):
        self.sinks = list(sinks)

    def add(self, sink: NotificationSink) -> None:
        self.sinks.append(sink)

    def notify(self, text: str) -> None:
        for sink in self.sinks:
            try:
                sink.notify(text)
            except Exception as e:
                # One broken sink must not starve the others
                logger.error(f"Notification sink {sink.__class__.__name__} failed: {e}")
