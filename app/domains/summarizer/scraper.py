import logging
from typing import Optional, List

import httpx
from bs4 import BeautifulSoup

from app.core.config import settings
from app.domains.summarizer.entities import ScrapeResult, ContentSection

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; TeamShelfSummarizer/1.0)"

CHROME_SELECTOR = (
    "script, style, nav, header, footer, aside, .sidebar, .navigation, .menu, "
    ".ad, .advertisement, .cookie-banner, .popup"
)

MAIN_SELECTORS = [
    "main",
    "article",
    ".content",
    ".main-content",
    ".post-content",
    ".article-content",
    ".documentation",
    ".docs-content",
    "#content",
    "#main",
]

CONTENT_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "pre", "code", "ul", "ol", "blockquote", "table"]


async def scrape_url(url: str, client: Optional[httpx.AsyncClient] = None) -> ScrapeResult:
    """Загрузка страницы и извлечение основного текста"""
    headers = {"User-Agent": USER_AGENT, "Accept": "text/html,application/xhtml+xml"}
    if client is None:
        async with httpx.AsyncClient(timeout=settings.scraper_timeout_seconds, follow_redirects=True) as own_client:
            response = await own_client.get(url, headers=headers)
    else:
        response = await client.get(url, headers=headers)

    response.raise_for_status()
    logger.debug("Fetched %s (%s bytes)", url, len(response.content))
    return parse_html(response.text, url)


def _section_text(el) -> str:
    if el.name in ("pre", "code"):
        return "\n```\n" + el.get_text().strip() + "\n```\n"
    if el.name in ("ul", "ol"):
        return "".join("\n- " + li.get_text(" ", strip=True) for li in el.find_all("li")) + "\n"
    if el.name == "blockquote":
        return "\n> " + el.get_text(" ", strip=True) + "\n"
    if el.name == "table":
        rows = [
            " | ".join(cell.get_text(" ", strip=True) for cell in tr.find_all(["th", "td"]))
            for tr in el.find_all("tr")
        ]
        return "\n[Table content]\n" + "\n".join(rows) + "\n"
    return "\n" + el.get_text(" ", strip=True)


def parse_html(html: str, url: str, max_length: Optional[int] = None) -> ScrapeResult:
    """Секции по заголовкам из основной области страницы"""
    max_length = max_length or settings.scraper_max_content_length
    soup = BeautifulSoup(html, "lxml")

    for bad in soup.select(CHROME_SELECTOR):
        bad.decompose()

    content = None
    for selector in MAIN_SELECTORS:
        content = soup.select_one(selector)
        if content is not None:
            break
    if content is None:
        content = soup.body or soup

    h1 = soup.find("h1")
    title = (
        (h1.get_text(" ", strip=True) if h1 else "")
        or (soup.title.get_text(strip=True) if soup.title else "")
        or "Untitled Document"
    )

    sections: List[ContentSection] = []
    current: Optional[ContentSection] = None
    for el in content.find_all(CONTENT_TAGS):
        # Вложенные элементы уже учтены в тексте родителя
        if el.find_parent(["pre", "ul", "ol", "blockquote", "table"]):
            continue
        if el.name[0] == "h" and el.name[1:].isdigit():
            if current and current.content.strip():
                sections.append(current)
            current = ContentSection(heading=el.get_text(" ", strip=True), level=int(el.name[1]))
        elif current is not None:
            current.content += _section_text(el)
        else:
            current = ContentSection(heading="Introduction", level=1, content=el.get_text(" ", strip=True))

    if current and current.content.strip():
        sections.append(current)

    full_content = "\n\n".join(f"## {s.heading}\n{s.content}" for s in sections)
    if len(full_content) > max_length:
        full_content = full_content[:max_length] + "\n\n[Content truncated...]"

    return ScrapeResult(title=title, content=full_content, url=url, sections=sections)
