from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: Optional[str] = None
    variant: Optional[str] = None

    @property
    def is_destructive(self) -> bool:
        return self.variant == DESTRUCTIVE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NotificationSink(Protocol):
    def __call__(self, notification: Notification) -> None:
        ...


class NotificationLog:
    """In-memory sink; the UI shell and the API drain it after each operation."""

    def __init__(self) -> None:
        self._items: List[Notification] = []

    def __call__(self, notification: Notification) -> None:
        level = logging.WARNING if notification.is_destructive else logging.INFO
        logger.log(level, "notify: %s%s", notification.title, f" ({notification.description})" if notification.description else "")
        self._items.append(notification)

    @property
    def items(self) -> List[Notification]:
        return list(self._items)

    def drain(self) -> List[Notification]:
        items, self._items = self._items, []
        return items
