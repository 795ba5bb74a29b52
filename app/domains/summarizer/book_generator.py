import html as html_lib
import math
import re

from app.domains.summarizer.entities import SummaryResult
from app.domains.summarizer.schemas import GeneratedBook, GeneratedBookStats, GeneratedChapter, GeneratedPage


def markdown_to_html(markdown: str) -> str:
    """Простое преобразование Markdown в HTML: код, заголовки, выделение, списки, цитаты, абзацы"""
    text = markdown or ""

    text = re.sub(
        r"```(\w*)\n([\s\S]*?)```",
        lambda m: '<pre><code class="language-{}">{}</code></pre>'.format(
            m.group(1) or "plaintext", html_lib.escape(m.group(2).strip())
        ),
        text,
    )
    text = re.sub(r"`([^`]+)`", r"<code>\1</code>", text)

    text = re.sub(r"^### (.+)$", r"<h3>\1</h3>", text, flags=re.M)
    text = re.sub(r"^## (.+)$", r"<h2>\1</h2>", text, flags=re.M)
    text = re.sub(r"^# (.+)$", r"<h1>\1</h1>", text, flags=re.M)

    text = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"\*(.+?)\*", r"<em>\1</em>", text)

    text = re.sub(r"^- (.+)$", r"<li>\1</li>", text, flags=re.M)
    text = re.sub(r"(?:<li>.*</li>\n)*<li>.*</li>", lambda m: f"<ul>{m.group(0)}</ul>", text)

    text = re.sub(r"^> (.+)$", r"<blockquote>\1</blockquote>", text, flags=re.M)

    text = "<p>" + text.replace("\n\n", "</p><p>") + "</p>"

    # Блочные элементы не оборачиваются в <p>
    text = re.sub(r"<p>\s*</p>", "", text)
    for tag in ("h[1-6]", "pre", "ul", "blockquote"):
        text = re.sub(rf"<p>(<{tag}>)", r"\1", text)
        text = re.sub(rf"(</{tag}>)</p>", r"\1", text)
    return text


def generate_book_structure(summary: SummaryResult) -> GeneratedBook:
    """Сводка -> книга: глава на каждый раздел, страницы из явных страниц или из текста главы"""
    chapters = []
    for index, chapter in enumerate(summary.chapters):
        if chapter.pages:
            pages = [
                GeneratedPage(name=p.title or chapter.title or "Untitled", content=p.content, html=markdown_to_html(p.content))
                for p in chapter.pages
            ]
        else:
            pages = [
                GeneratedPage(
                    name=chapter.title or f"Chapter {index + 1}",
                    content=chapter.content,
                    html=markdown_to_html(chapter.content)
                )
            ]
        chapters.append(GeneratedChapter(name=chapter.title or f"Chapter {index + 1}", pages=pages))

    return GeneratedBook(name=summary.title or "Untitled", description=summary.summary, chapters=chapters)


def book_stats(book: GeneratedBook) -> GeneratedBookStats:
    """Число глав и страниц, время чтения из расчета 200 слов в минуту"""
    total_pages = sum(len(chapter.pages) for chapter in book.chapters)
    total_words = sum(len(page.content.split()) for chapter in book.chapters for page in chapter.pages)
    return GeneratedBookStats(
        total_chapters=len(book.chapters),
        total_pages=total_pages,
        estimated_read_time=math.ceil(total_words / 200)
    )
