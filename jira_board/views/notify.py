"""User-visible notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Notification:
    message: str
    level: int = logging.INFO


class Notifier(Protocol):
    def notify(self, message: str, level: int = logging.INFO) -> None: ...


class LoggingNotifier:
    def notify(self, message: str, level: int = logging.INFO) -> None:
        logger.log(level, message)


class CollectingNotifier(LoggingNotifier):
    """Logs and keeps notifications until a UI pops them."""

    def __init__(self) -> None:
        self.items: list[Notification] = []

    def notify(self, message: str, level: int = logging.INFO) -> None:
        super().notify(message, level)
        self.items.append(Notification(message, level))

    def pop_all(self) -> list[Notification]:
        items, self.items = self.items, []
        return items
