"""User-visible notices raised while a session runs."""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    INFO = "info"
    ERROR = "error"


class Notice(BaseModel):
    """A short, non-fatal message for the user interface."""
    level: NoticeLevel
    message: str
    created_at: datetime = Field(default_factory=datetime.now)


class NoticeBoard:
    """Collects notices and forwards them to an optional listener."""

    def __init__(self, listener: Optional[Callable[[Notice], None]] = None):
        self.listener = listener
        self._notices: List[Notice] = []

    @property
    def notices(self) -> List[Notice]:
        return list(self._notices)

    def info(self, message: str):
        self._post(Notice(level=NoticeLevel.INFO, message=message))

    def error(self, message: str):
        self._post(Notice(level=NoticeLevel.ERROR, message=message))

    def _post(self, notice: Notice):
        logger.debug(f"Notice [{notice.level.value}]: {notice.message}")
        self._notices.append(notice)
        if self.listener:
            self.listener(notice)

    def clear(self):
        self._notices.clear()
