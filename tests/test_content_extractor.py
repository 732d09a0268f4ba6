import httpx
import pytest

from fetchers.content_extractor import ArticleExtractor, extract_main_text
from trend_engine.errors import SourceUnavailableError

BODY = "Hot yoga classes are booked out across the city this summer. " * 5


def test_article_container_preferred():
    html = f"""<html><body>
    <nav>Home | Shop | Login</nav>
    <header>Site banner</header>
    <article><h1>Hot yoga</h1><p>{BODY}</p><script>track()</script></article>
    <footer>Copyright</footer></body></html>"""
    text = extract_main_text(html)
    assert text.startswith("Hot yoga Hot yoga classes")
    assert "Home | Shop" not in text
    assert "track()" not in text
    assert "Copyright" not in text


def test_paragraph_fallback():
    paragraphs = "".join(f"<p>Paragraph {i}</p>" for i in range(15))
    text = extract_main_text(f"<html><body><div>{paragraphs}</div></body></html>")
    assert text.startswith("Paragraph 0 Paragraph 1")
    assert "Paragraph 9" in text
    assert "Paragraph 10" not in text


def test_extract_fetches_page():
    client = httpx.Client(transport=httpx.MockTransport(
        lambda r: httpx.Response(200, text=f"<main><p>{BODY}</p></main>")
    ))
    assert "booked out" in ArticleExtractor(client=client).extract("https://news.example/1")


@pytest.mark.parametrize("status, html", [(404, ""), (200, "<html><body><nav>menu</nav></body></html>")])
def test_unreadable_pages_raise(status, html):
    client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(status, text=html)))
    with pytest.raises(SourceUnavailableError):
        ArticleExtractor(client=client).extract("https://news.example/1")


def test_missing_link_raises():
    with pytest.raises(SourceUnavailableError):
        ArticleExtractor(client=httpx.Client()).extract("")
