from typing import Optional, List

from markdownify import markdownify as md

from app.domains.content.entities import Page, ChapterTree, BookTree

SECTION_SEPARATOR = "\n\n---\n\n"


def html_to_markdown(html: Optional[str]) -> str:
    """HTML страницы в Markdown: ATX-заголовки, маркеры списков "-" """
    if not html:
        return ""
    return md(html, heading_style="ATX", bullets="-", code_language_callback=_code_language).strip()


def _code_language(el) -> Optional[str]:
    # <pre><code class="language-python">
    code = el.find("code")
    if code is None:
        return None
    for cls in code.get("class") or []:
        if cls.startswith("language-"):
            return cls[len("language-"):]
    return None


def page_markdown(page: Page) -> str:
    return f"# {page.name}\n\n{html_to_markdown(page.html)}"


def chapter_markdown(tree: ChapterTree) -> str:
    parts: List[str] = [f"# {tree.chapter.name}\n"]
    for page in tree.pages:
        parts.append(f"## {page.name}\n\n{html_to_markdown(page.html)}")
    return SECTION_SEPARATOR.join(parts)


def book_markdown(tree: BookTree) -> str:
    """Книга: главы со страницами, затем прямые страницы"""
    parts: List[str] = [f"# {tree.book.name}\n"]
    for chapter in tree.chapters:
        parts.append(f"## {chapter.chapter.name}\n")
        for page in chapter.pages:
            parts.append(f"### {page.name}\n\n{html_to_markdown(page.html)}")
    for page in tree.direct_pages:
        parts.append(f"## {page.name}\n\n{html_to_markdown(page.html)}")
    return SECTION_SEPARATOR.join(parts)
