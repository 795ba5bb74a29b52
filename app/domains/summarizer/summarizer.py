"""Суммаризация текста документации через OpenAI chat completions"""
import json
import logging
import re
from typing import Optional, List

from openai import AsyncOpenAI

from app.core.config import settings
from app.domains.summarizer.entities import ScrapeResult, SummaryResult, ChapterSummary

logger = logging.getLogger(__name__)

FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

LANGUAGE_INSTRUCTIONS = {
    "en": "Write in clear English.",
    "id": "Tulis dalam Bahasa Indonesia yang baik dan benar.",
}

BOOK_PROMPT = """You are a documentation summarizer. Summarize the documentation below into a structured book.

{language}

Documentation Title: {title}
Source URL: {url}

Content:
{content}

Respond with only JSON of this shape:
{{"title": "{book_title}", "summary": "2-3 sentence overview", "chapters": [{{"title": "...", "content": "markdown"}}]}}
Create 2-5 chapters, each covering a distinct topic; keep code examples and key concepts."""

CHUNK_PROMPT = """You are a documentation summarizer. Summarize this section of documentation.

{language}

Section {number} of {total}:
{chunk}

Respond with only JSON: {{"title": "descriptive section title", "content": "markdown summary"}}"""

OVERVIEW_PROMPT = """{language}

Based on these chapter summaries, write a brief 2-3 sentence overview:
{chapters}

Respond with only the overview text, no JSON."""


def parse_json_reply(content: str) -> dict:
    """JSON из ответа модели; допускается обертка в блок ```json"""
    match = FENCED_JSON.search(content)
    payload = match.group(1).strip() if match else content.strip()
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse summarization result: {e}")
    if not isinstance(data, dict):
        raise ValueError("Summarization result is not a JSON object")
    return data


def chunk_content(content: str, chunk_size: int) -> List[str]:
    """Разбиение по абзацам на куски не длиннее chunk_size (кроме слишком длинных абзацев)"""
    chunks: List[str] = []
    current = ""
    for paragraph in re.split(r"\n\n+", content):
        if len(current) + len(paragraph) > chunk_size:
            if current.strip():
                chunks.append(current.strip())
            current = paragraph
        else:
            current += "\n\n" + paragraph
    if current.strip():
        chunks.append(current.strip())
    return chunks or [content]


class Summarizer:
    """Клиент LLM для суммаризации документации"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        self.model = model or settings.openai_model
        self._client = client or AsyncOpenAI(
            api_key=api_key or settings.openai_api_key,
            base_url=settings.openai_base_url
        )

    async def _complete(self, prompt: str, system: str) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=0.3,
        )
        return (response.choices[0].message.content or "").strip()

    async def summarize(
        self,
        scrape: ScrapeResult,
        language: str = "en",
        book_name: Optional[str] = None
    ) -> SummaryResult:
        """Одна сводка для короткого текста, иначе по кускам с общим обзором"""
        language_instruction = LANGUAGE_INSTRUCTIONS.get(language, LANGUAGE_INSTRUCTIONS["en"])
        chunks = chunk_content(scrape.content, settings.summarizer_chunk_size)

        if len(chunks) == 1:
            reply = await self._complete(
                BOOK_PROMPT.format(
                    language=language_instruction,
                    title=scrape.title,
                    url=scrape.url,
                    content=scrape.content,
                    book_title=book_name or scrape.title
                ),
                system="You summarize documentation. Return only valid JSON."
            )
            result = SummaryResult.from_dict(parse_json_reply(reply))
            if book_name:
                result.title = book_name
            return result

        return await self._summarize_chunks(scrape, chunks, language_instruction, book_name)

    async def _summarize_chunks(
        self,
        scrape: ScrapeResult,
        chunks: List[str],
        language_instruction: str,
        book_name: Optional[str]
    ) -> SummaryResult:
        chapters: List[ChapterSummary] = []
        for index, chunk in enumerate(chunks[:settings.summarizer_max_chunks]):
            reply = await self._complete(
                CHUNK_PROMPT.format(
                    language=language_instruction,
                    number=index + 1,
                    total=len(chunks),
                    chunk=chunk
                ),
                system="You summarize documentation. Return only valid JSON."
            )
            try:
                data = parse_json_reply(reply)
                chapters.append(ChapterSummary(
                    title=str(data.get("title") or f"Section {index + 1}"),
                    content=str(data.get("content") or "")
                ))
            except ValueError:
                logger.warning("Unparseable summary for chunk %s of %s, using raw text", index + 1, scrape.url)
                chapters.append(ChapterSummary(title=f"Section {index + 1}", content=chunk[:500] + "..."))

        overview = await self._complete(
            OVERVIEW_PROMPT.format(
                language=language_instruction,
                chapters="\n".join(f"- {c.title}: {c.content[:100]}..." for c in chapters)
            ),
            system="You summarize documentation."
        )
        return SummaryResult(
            title=book_name or scrape.title,
            summary=overview or "A comprehensive summary of the documentation.",
            chapters=chapters
        )
