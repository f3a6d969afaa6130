"""
Journal des notifications (toasts) affichées à l'utilisateur.

Chaque notification est aussi écrite dans les logs. L'interface consomme la liste
puis appelle clear().
"""

import logging
from typing import List, Literal, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

Level = Literal["success", "error", "info"]


class Notification(BaseModel):
    level: Level
    title: str
    description: Optional[str] = None


class Notifier:
    def __init__(self):
        self.items: List[Notification] = []

    def success(self, title: str, description: Optional[str] = None) -> None:
        self._push("success", title, description)

    def error(self, title: str, description: Optional[str] = None) -> None:
        self._push("error", title, description)

    def info(self, title: str, description: Optional[str] = None) -> None:
        self._push("info", title, description)

    def last(self) -> Optional[Notification]:
        return self.items[-1] if self.items else None

    def clear(self) -> None:
        self.items.clear()

    def _push(self, level: Level, title: str, description: Optional[str]) -> None:
        self.items.append(Notification(level=level, title=title, description=description))
        log = logger.warning if level == "error" else logger.info
        log("[%s] %s%s", level, title, f" : {description}" if description else "")
