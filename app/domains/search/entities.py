import re
import uuid
from dataclasses import dataclass
from typing import Optional, List

from bs4 import BeautifulSoup

from app.domains.content.entities import ContentEntity, ContentKind, Page

MIN_QUERY_LENGTH = 2
TYPE_LIMIT = 10
PAGE_LIMIT = 15
TOTAL_LIMIT = 25

SNIPPET_BEFORE = 50
SNIPPET_AFTER = 100
SNIPPET_LENGTH = 150


@dataclass
class SearchResult:
    id: uuid.UUID
    kind: ContentKind
    name: str
    slug: str
    snippet: Optional[str]
    rank: float


def search_terms(query: str) -> List[str]:
    """Слова запроса длиннее одного символа; короткий запрос не ищется"""
    query = (query or "").strip()
    if len(query) < MIN_QUERY_LENGTH:
        return []
    return [t for t in query.split() if len(t) > 1]


def strip_html(html: Optional[str]) -> str:
    if not html:
        return ""
    text = BeautifulSoup(html, "lxml").get_text(" ")
    return re.sub(r"\s+", " ", text).strip()


def extract_snippet(text: str, query: str) -> str:
    """Фрагмент вокруг первого вхождения запроса; без вхождения - начало текста"""
    index = text.lower().find(query.lower())
    if index == -1:
        return text[:SNIPPET_LENGTH] + ("..." if len(text) > SNIPPET_LENGTH else "")

    start = max(0, index - SNIPPET_BEFORE)
    end = min(len(text), index + len(query) + SNIPPET_AFTER)
    snippet = text[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(text):
        snippet = snippet + "..."
    return snippet


def searchable_text(entity: ContentEntity) -> str:
    if isinstance(entity, Page):
        return strip_html(entity.html) or (entity.content or "")
    return entity.description or ""


def rank(entity: ContentEntity, query: str, terms: List[str]) -> float:
    """Вес совпадения: имя важнее текста, целая фраза важнее отдельных слов"""
    name = entity.name.lower()
    text = searchable_text(entity).lower()
    phrase = query.strip().lower()

    score = 0.0
    if phrase in name:
        score += 4.0
    if phrase in text:
        score += 2.0
    for term in terms:
        term = term.lower()
        if term in name:
            score += 1.0
        score += min(text.count(term), 10) * 0.1
    return score


def to_result(entity: ContentEntity, query: str, terms: List[str]) -> SearchResult:
    text = searchable_text(entity)
    return SearchResult(
        id=entity.id,
        kind=entity.kind,
        name=entity.name,
        slug=entity.slug,
        snippet=extract_snippet(text, query.strip()) if text else None,
        rank=rank(entity, query, terms)
    )
