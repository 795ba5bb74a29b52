from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ContentSection:
    heading: str
    level: int
    content: str = ""


@dataclass
class ScrapeResult:
    """Результат скрапинга: заголовок, текст по секциям и исходный URL"""
    title: str
    content: str
    url: str
    sections: List[ContentSection] = field(default_factory=list)


@dataclass
class PageSummary:
    title: str
    content: str


@dataclass
class ChapterSummary:
    title: str
    content: str
    pages: Optional[List[PageSummary]] = None


@dataclass
class SummaryResult:
    title: str
    summary: str
    chapters: List[ChapterSummary] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "SummaryResult":
        chapters = []
        for chapter in data.get("chapters") or []:
            pages = chapter.get("pages")
            chapters.append(ChapterSummary(
                title=str(chapter.get("title") or ""),
                content=str(chapter.get("content") or ""),
                pages=[PageSummary(str(p.get("title") or ""), str(p.get("content") or "")) for p in pages]
                if pages else None
            ))
        return cls(
            title=str(data.get("title") or "Untitled"),
            summary=str(data.get("summary") or ""),
            chapters=chapters
        )
