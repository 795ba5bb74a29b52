"""Рендеринг PDF через reportlab (A4, поля 20 мм)

HTML страниц разбирается BeautifulSoup на блоки: заголовки, абзацы,
элементы списков, цитаты и блоки кода. Инлайновая разметка сводится к
тексту.
"""
import io
from dataclasses import dataclass, field
from typing import Optional, List, Any
from xml.sax.saxutils import escape

from bs4 import BeautifulSoup
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Preformatted, Spacer, PageBreak

from app.domains.content.entities import Page, ChapterTree, BookTree

BLOCK_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "li", "blockquote", "pre"]


@dataclass
class Section:
    """Заголовок уровня level и HTML-содержимое под ним"""
    level: int
    title: str
    html: Optional[str] = None
    page_break: bool = False


@dataclass
class PdfDocument:
    title: str
    sections: List[Section] = field(default_factory=list)


def page_document(page: Page) -> PdfDocument:
    return PdfDocument(
        title=page.name,
        sections=[Section(1, page.name, page.html or "<p>No content</p>")]
    )


def chapter_document(tree: ChapterTree) -> PdfDocument:
    sections = [Section(1, tree.chapter.name)]
    sections += [Section(2, page.name, page.html, page_break=True) for page in tree.pages]
    return PdfDocument(title=tree.chapter.name, sections=sections)


def book_document(tree: BookTree) -> PdfDocument:
    sections = [Section(1, tree.book.name)]
    for chapter in tree.chapters:
        sections.append(Section(2, chapter.chapter.name, page_break=True))
        sections += [Section(3, page.name, page.html) for page in chapter.pages]
    sections += [Section(2, page.name, page.html, page_break=True) for page in tree.direct_pages]
    return PdfDocument(title=tree.book.name, sections=sections)


def _styles():
    styles = getSampleStyleSheet()
    return {
        1: ParagraphStyle("ExportH1", parent=styles["Heading1"], fontSize=20, leading=24, spaceAfter=12),
        2: ParagraphStyle("ExportH2", parent=styles["Heading2"], fontSize=16, leading=20, spaceBefore=12, spaceAfter=8),
        3: ParagraphStyle("ExportH3", parent=styles["Heading3"], fontSize=13, leading=16, spaceBefore=10, spaceAfter=6),
        "body": ParagraphStyle("ExportBody", parent=styles["BodyText"], fontSize=10.5, leading=15, spaceAfter=6),
        "bullet": ParagraphStyle("ExportBullet", parent=styles["BodyText"], fontSize=10.5, leading=15, leftIndent=12),
        "quote": ParagraphStyle("ExportQuote", parent=styles["Italic"], leftIndent=16, spaceAfter=6),
        "code": ParagraphStyle("ExportCode", parent=styles["Code"], fontSize=9, leading=11, spaceAfter=6),
    }


def _html_flowables(html: str, level: int, styles) -> List[Any]:
    """Блоки HTML как flowables reportlab; заголовки внутри страницы ниже уровня секции"""
    soup = BeautifulSoup(html, "html.parser")
    story: List[Any] = []
    for el in soup.find_all(BLOCK_TAGS):
        # Вложенные блоки обрабатываются вместе с родителем
        if el.find_parent(["li", "blockquote", "pre"]):
            continue
        if el.name == "pre":
            story.append(Preformatted(el.get_text(), styles["code"]))
            continue

        text = escape(el.get_text(" ", strip=True))
        if not text:
            continue
        if el.name.startswith("h"):
            story.append(Paragraph(text, styles[min(level + 1, 3)]))
        elif el.name == "li":
            story.append(Paragraph(f"• {text}", styles["bullet"]))
        elif el.name == "blockquote":
            story.append(Paragraph(text, styles["quote"]))
        else:
            story.append(Paragraph(text, styles["body"]))
    return story


def render_pdf(document: PdfDocument) -> bytes:
    """Синхронный рендеринг; вызывается в дочернем процессе (см. worker)"""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        title=document.title,
    )
    styles = _styles()

    story: List[Any] = []
    for index, section in enumerate(document.sections):
        if section.page_break and index > 0:
            story.append(PageBreak())
        story.append(Paragraph(escape(section.title), styles[section.level]))
        if section.html:
            story += _html_flowables(section.html, section.level, styles)
        story.append(Spacer(1, 4 * mm))

    doc.build(story)
    return buf.getvalue()
