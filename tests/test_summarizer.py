from types import SimpleNamespace

import httpx
import pytest

from app.api.http.summarizer import get_summarizer_pipeline
from app.core.config import settings
from app.core.errors import InvalidRequest, UpstreamFailure
from app.domains.identity.entities import GlobalRole
from app.domains.summarizer.book_generator import markdown_to_html, generate_book_structure, book_stats
from app.domains.summarizer.entities import ScrapeResult, SummaryResult, ChapterSummary, PageSummary
from app.domains.summarizer.schemas import SummarizeRequest, GeneratedBook
from app.domains.summarizer.scraper import parse_html, scrape_url, USER_AGENT
from app.domains.summarizer.services import SummarizerPipeline
from app.domains.summarizer.summarizer import Summarizer, parse_json_reply, chunk_content
from app.main import app
from tests.helpers import create_user, auth_headers, create_shelf

DOC_HTML = """
<html>
  <head><title>Widget Docs</title><script>track()</script></head>
  <body>
    <nav>Home | API</nav>
    <main>
      <h1>Widget Guide</h1>
      <p>Widgets are small.</p>
      <h2>Install</h2>
      <p>Run the installer.</p>
      <pre><code>pip install widget</code></pre>
      <ul><li>fast</li><li>tiny</li></ul>
    </main>
    <footer>(c) Widgets</footer>
  </body>
</html>
"""

SUMMARY = SummaryResult(
    title="Widget Guide",
    summary="All about widgets.",
    chapters=[
        ChapterSummary(title="Basics", content="Widgets are **small**.\n\n- fast\n- tiny"),
        ChapterSummary(
            title="Usage",
            content="",
            pages=[PageSummary("Install", "Run `pip install widget`"), PageSummary("Configure", "Edit the file")]
        ),
    ]
)


class FakeCompletions:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.replies.pop(0))
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(*replies):
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(replies)))


def test_parse_html_extracts_sections():
    result = parse_html(DOC_HTML, "https://docs.example.com/widget")

    assert result.title == "Widget Guide"
    assert [s.heading for s in result.sections] == ["Widget Guide", "Install"]
    assert "Home | API" not in result.content
    assert "(c) Widgets" not in result.content
    assert "## Install" in result.content
    assert "```\npip install widget\n```" in result.content
    assert "- fast" in result.content


def test_parse_html_truncates_long_content():
    result = parse_html(DOC_HTML, "https://docs.example.com", max_length=20)
    assert result.content.endswith("[Content truncated...]")


def test_parse_html_without_headings_uses_introduction():
    result = parse_html("<html><body><p>Just text.</p></body></html>", "https://x.example.com")
    assert [s.heading for s in result.sections] == ["Introduction"]
    assert result.title == "Untitled Document"


async def test_scrape_url_sends_user_agent():
    seen = {}

    def handler(request):
        seen["user_agent"] = request.headers["user-agent"]
        return httpx.Response(200, text=DOC_HTML)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await scrape_url("https://docs.example.com/widget", client=client)

    assert seen["user_agent"] == USER_AGENT
    assert result.url == "https://docs.example.com/widget"
    assert result.title == "Widget Guide"


async def test_scrape_url_raises_on_http_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(404))
    async with httpx.AsyncClient(transport=transport) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await scrape_url("https://docs.example.com/missing", client=client)


def test_parse_json_reply():
    assert parse_json_reply('```json\n{"title": "T"}\n```') == {"title": "T"}
    assert parse_json_reply(' {"title": "T"} ') == {"title": "T"}
    with pytest.raises(ValueError):
        parse_json_reply("not json")
    with pytest.raises(ValueError):
        parse_json_reply("[1, 2]")


def test_chunk_content():
    content = "a" * 10 + "\n\n" + "b" * 10
    assert chunk_content(content, 15) == ["a" * 10, "b" * 10]
    assert chunk_content(content, 100) == [content]


async def test_summarizer_single_request():
    client = fake_client('```json\n{"title": "X", "summary": "S", "chapters": [{"title": "C1", "content": "Body"}]}\n```')
    summarizer = Summarizer(model="test-model", client=client)
    scrape = ScrapeResult(title="Docs", content="short text", url="https://docs.example.com")

    result = await summarizer.summarize(scrape, language="id", book_name="My Book")

    assert result.title == "My Book"
    assert result.summary == "S"
    assert [(c.title, c.content) for c in result.chapters] == [("C1", "Body")]
    [call] = client.chat.completions.calls
    assert call["model"] == "test-model"
    assert "Bahasa Indonesia" in call["messages"][1]["content"]


async def test_summarizer_chunks_long_content(monkeypatch):
    monkeypatch.setattr(settings, "summarizer_chunk_size", 15)
    client = fake_client(
        '{"title": "Part A", "content": "first"}',
        "garbage",
        "Overview text"
    )
    summarizer = Summarizer(model="test-model", client=client)
    scrape = ScrapeResult(title="Docs", content="a" * 10 + "\n\n" + "b" * 10, url="https://docs.example.com")

    result = await summarizer.summarize(scrape)

    assert result.title == "Docs"
    assert result.summary == "Overview text"
    assert [c.title for c in result.chapters] == ["Part A", "Section 2"]
    assert result.chapters[1].content.startswith("bbbbbbbbbb")


def test_markdown_to_html():
    html = markdown_to_html("# Title\n\nSome **bold** and *soft* text\n\n- a\n- b\n\n> quoted")
    assert html.startswith("<h1>Title</h1>")
    assert "<p>Some <strong>bold</strong> and <em>soft</em> text</p>" in html
    assert "<ul><li>a</li>\n<li>b</li></ul>" in html
    assert "<blockquote>quoted</blockquote>" in html
    assert "<p><h1>" not in html

    code = markdown_to_html("```python\nprint('<hi>')\n```")
    assert code == '<pre><code class="language-python">print(&#x27;&lt;hi&gt;&#x27;)</code></pre>'


def test_generate_book_structure_and_stats():
    book = generate_book_structure(SUMMARY)

    assert book.name == "Widget Guide"
    assert book.description == "All about widgets."
    assert [c.name for c in book.chapters] == ["Basics", "Usage"]
    assert [p.name for p in book.chapters[0].pages] == ["Basics"]
    assert [p.name for p in book.chapters[1].pages] == ["Install", "Configure"]
    assert "<code>pip install widget</code>" in book.chapters[1].pages[0].html

    stats = book_stats(book)
    assert stats.total_chapters == 2
    assert stats.total_pages == 3
    assert stats.estimated_read_time == 1


async def test_pipeline_runs_stages_in_order():
    calls = []

    async def scrape(url):
        calls.append(("scrape", url))
        return ScrapeResult(title="Docs", content="text", url=url)

    async def summarize(scraped, language, book_name):
        calls.append(("summarize", language, book_name))
        return SUMMARY

    pipeline = SummarizerPipeline(scrape=scrape, summarize=summarize)
    book = await pipeline.run(SummarizeRequest(url="https://docs.example.com/", book_name="Widgets"))

    assert calls == [("scrape", "https://docs.example.com/"), ("summarize", "en", "Widgets")]
    assert book.name == "Widget Guide"


async def test_pipeline_stage_failure_names_the_stage():
    async def scrape(url):
        raise httpx.ConnectError("unreachable")

    pipeline = SummarizerPipeline(scrape=scrape, summarize=lambda *a, **kw: SUMMARY)
    with pytest.raises(UpstreamFailure) as excinfo:
        await pipeline.run(SummarizeRequest(url="https://docs.example.com/"))
    assert excinfo.value.message == "Summarization failed at the scrape stage"

    def structure(summary):
        raise KeyError("chapters")

    async def scrape_ok(url):
        return ScrapeResult(title="Docs", content="text", url=url)

    pipeline = SummarizerPipeline(scrape=scrape_ok, summarize=lambda *a, **kw: SUMMARY, structure=structure)
    with pytest.raises(UpstreamFailure) as excinfo:
        await pipeline.run(SummarizeRequest(url="https://docs.example.com/"))
    assert excinfo.value.message == "Summarization failed at the structure stage"


async def test_pipeline_without_api_key_is_rejected(monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", None)
    with pytest.raises(InvalidRequest):
        await SummarizerPipeline().run(SummarizeRequest(url="https://docs.example.com/"))


async def test_summarize_endpoint(client):
    user = await create_user()

    async def scrape(url):
        return ScrapeResult(title="Docs", content="text", url=url)

    app.dependency_overrides[get_summarizer_pipeline] = lambda: SummarizerPipeline(
        scrape=scrape, summarize=lambda *a, **kw: SUMMARY
    )

    response = await client.post(
        "/plugins/summarize", json={"url": "https://docs.example.com/"}, headers=auth_headers(user)
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Widget Guide"
    assert body["stats"] == {"total_chapters": 2, "total_pages": 3, "estimated_read_time": 1}

    response = await client.post("/plugins/summarize", json={"url": "not a url"}, headers=auth_headers(user))
    assert response.status_code == 400

    response = await client.post("/plugins/summarize", json={"url": "https://docs.example.com/"})
    assert response.status_code == 401


async def test_summarize_endpoint_reports_upstream_failure(client):
    user = await create_user()

    async def scrape(url):
        raise RuntimeError("boom")

    app.dependency_overrides[get_summarizer_pipeline] = lambda: SummarizerPipeline(
        scrape=scrape, summarize=lambda *a, **kw: SUMMARY
    )

    response = await client.post(
        "/plugins/summarize", json={"url": "https://docs.example.com/"}, headers=auth_headers(user)
    )
    assert response.status_code == 500
    assert response.json() == {"detail": "Summarization failed at the scrape stage"}


async def test_create_generated_book(client):
    user = await create_user()
    shelf = await create_shelf(client, user)
    generated = generate_book_structure(SUMMARY)

    response = await client.post(
        "/plugins/summarize/create",
        json={"book": generated.model_dump(), "shelf_id": shelf["id"]},
        headers=auth_headers(user)
    )
    assert response.status_code == 200
    created = response.json()
    assert created["success"] is True

    tree = (await client.get(f"/books/{created['slug']}/read")).json()
    assert tree["id"] == created["id"]
    assert [c["name"] for c in tree["chapters"]] == ["Basics", "Usage"]
    assert [p["name"] for p in tree["chapters"][1]["pages"]] == ["Install", "Configure"]

    book = await client.get(f"/books/{created['slug']}", headers=auth_headers(user))
    assert book.json()["shelf_id"] == shelf["id"]


async def test_create_generated_book_checks_permissions(client):
    viewer = await create_user(role=GlobalRole.VIEWER)
    editor = await create_user()
    generated = GeneratedBook(name="Empty")

    response = await client.post(
        "/plugins/summarize/create", json={"book": generated.model_dump()}, headers=auth_headers(viewer)
    )
    assert response.status_code == 403

    response = await client.post(
        "/plugins/summarize/create",
        json={"book": generated.model_dump(), "shelf_id": "00000000-0000-0000-0000-000000000000"},
        headers=auth_headers(editor)
    )
    assert response.status_code == 404
