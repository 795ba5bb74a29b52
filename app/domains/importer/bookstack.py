"""Разбор переносимого ZIP-экспорта BookStack

Архив содержит data.json с одной книгой, главой или страницей. Импортируется
только экспорт книги: у главы и страницы нет книги-владельца.
"""
import io
import json
import zipfile
from dataclasses import dataclass, field
from typing import Optional, List

from app.core.errors import InvalidRequest
from app.domains.search.entities import strip_html
from app.domains.summarizer.book_generator import markdown_to_html

DATA_FILE = "data.json"
DESCRIPTION_LIMIT = 500


@dataclass
class ImportedPage:
    name: str
    html: Optional[str] = None
    content: Optional[str] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class ImportedChapter:
    name: str
    description: Optional[str] = None
    pages: List[ImportedPage] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)


@dataclass
class ImportedBook:
    name: str
    description: Optional[str] = None
    chapters: List[ImportedChapter] = field(default_factory=list)
    pages: List[ImportedPage] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)


def plain_description(html: Optional[str]) -> Optional[str]:
    text = strip_html(html)
    return text[:DESCRIPTION_LIMIT] or None


def _name(item: dict, what: str) -> str:
    name = str(item.get("name") or "").strip()
    if not name:
        raise InvalidRequest(f"Invalid BookStack export: {what} without a name")
    return name[:255]


def _tags(item: dict) -> List[str]:
    names = []
    for tag in item.get("tags") or []:
        name = str(tag.get("name") or "").strip()[:100] if isinstance(tag, dict) else ""
        if name and name not in names:
            names.append(name)
    return names


def _by_priority(items) -> List[dict]:
    return sorted((i for i in items or [] if isinstance(i, dict)), key=lambda i: i.get("priority") or 0)


def _page(item: dict) -> ImportedPage:
    """HTML страницы; при его отсутствии HTML строится из Markdown"""
    markdown = item.get("markdown") or None
    html = item.get("html") or None
    if not html and markdown:
        html = markdown_to_html(markdown)
    return ImportedPage(name=_name(item, "page"), html=html, content=markdown or "", tags=_tags(item))


def _chapter(item: dict) -> ImportedChapter:
    return ImportedChapter(
        name=_name(item, "chapter"),
        description=plain_description(item.get("description_html")),
        pages=[_page(p) for p in _by_priority(item.get("pages"))],
        tags=_tags(item)
    )


def parse_book(data: dict) -> ImportedBook:
    """Книга из data.json; главы и страницы упорядочены по priority"""
    if not isinstance(data, dict):
        raise InvalidRequest("Invalid BookStack export: no book, chapter, or page found")
    book = data.get("book")
    if isinstance(book, dict):
        return ImportedBook(
            name=_name(book, "book"),
            description=plain_description(book.get("description_html")),
            chapters=[_chapter(c) for c in _by_priority(book.get("chapters"))],
            pages=[_page(p) for p in _by_priority(book.get("pages"))],
            tags=_tags(book)
        )
    if data.get("chapter"):
        raise InvalidRequest("Chapter-only imports require a target book. Please import a full book export.")
    if data.get("page"):
        raise InvalidRequest("Page-only imports require a target book. Please import a full book export.")
    raise InvalidRequest("Invalid BookStack export: no book, chapter, or page found")


def read_archive(raw: bytes) -> ImportedBook:
    try:
        with zipfile.ZipFile(io.BytesIO(raw)) as archive:
            try:
                payload = archive.read(DATA_FILE)
            except KeyError:
                raise InvalidRequest("Invalid BookStack export: data.json not found")
    except zipfile.BadZipFile:
        raise InvalidRequest("Invalid ZIP archive")

    try:
        data = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise InvalidRequest("Invalid BookStack export: data.json is not valid JSON")
    return parse_book(data)
