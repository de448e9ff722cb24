"""
Push message rendering.

Turns a delivered push message into a displayed notification.  The display
itself is delegated to a ``show(title, options)`` coroutine so the same logic
serves any platform (and the preview endpoint, which just collects it).
"""

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

ShowNotification = Callable[[str, dict[str, Any]], Awaitable[None]]

_OPTION_FIELDS = ("icon", "badge", "image", "tag")


@dataclass
class DisplayedNotification:
    title: str
    options: dict[str, Any]


def notification_options(message: dict[str, Any]) -> dict[str, Any]:
    options: dict[str, Any] = {"body": message.get("body") or ""}
    for field in _OPTION_FIELDS:
        if message.get(field):
            options[field] = message[field]
    if message.get("url"):
        options["data"] = {"url": message["url"]}
    return options


class NotificationRenderer:
    def __init__(self, show: ShowNotification):
        self._show = show

    async def handle_push(self, data: bytes | str | None) -> DisplayedNotification | None:
        """Render one push message.

        Returns None (and shows nothing) when the message has no title.
        Raises ValueError when data is not a JSON object.
        """
        if not data:
            return None
        message = json.loads(data)
        if not isinstance(message, dict):
            raise ValueError("Push message must be a JSON object")

        title = message.get("title")
        if not title:
            logger.debug("Push message without title — nothing to show")
            return None

        notification = DisplayedNotification(title=str(title), options=notification_options(message))
        await self._show(notification.title, notification.options)
        return notification
