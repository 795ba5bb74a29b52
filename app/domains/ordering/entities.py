from enum import Enum

from app.domains.content.entities import ContentKind


class SiblingType(str, Enum):
    """Вид упорядочиваемых соседей"""
    CHAPTERS = "chapters"
    PAGES = "pages"

    @property
    def kind(self) -> ContentKind:
        return ContentKind.CHAPTER if self == SiblingType.CHAPTERS else ContentKind.PAGE
