"""Feed ingestion and citation lookup that feed the merge step.

Network access is strictly sequential: one request at a time, a fixed pause
between sources, and a bounded linear backoff when a server answers 429.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import os
from pathlib import Path
import re
import time
from typing import Any, Callable, Iterable
from urllib.parse import quote

import feedparser
import requests

from radar.lexicon import RELEVANCE_PHRASES
from radar.relevance import is_item_relevant

logger = logging.getLogger(__name__)

SEMANTIC_SCHOLAR_SEARCH_URL = "https://api.semanticscholar.org/graph/v1/paper/search"
SEMANTIC_SCHOLAR_FIELDS = "title,authors,year,venue,externalIds,openAccessPdf,url"
USER_AGENT = "research-radar-ingest/0.1"
REQUEST_TIMEOUT = 30
MAX_ATTEMPTS = 3
FEED_PAUSE_SECONDS = 0.7
PAPER_PAUSE_SECONDS = 1.1


class FeedError(RuntimeError):
    pass


@dataclass(frozen=True)
class FeedSource:
    id: str
    label: str
    urls: tuple[str, ...] = ()
    source: str = "industry"
    tags: tuple[str, ...] = ()
    html_url: str | None = None


_LISTING_PATTERNS = {
    "anthropic": (
        re.compile(r'<a[^>]+href="(https?://[^"]*anthropic\.com/news/[^"]+)"[^>]*>([\s\S]*?)</a>', re.I),
        "press kit",
    ),
    "meta-ai": (
        re.compile(r'<a[^>]+href="(https?://[^"]*ai\.meta\.com/blog/[^"]+)"[^>]*>([\s\S]*?)</a>', re.I),
        "newsletter",
    ),
}


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug[:120]


def _env_urls(name: str, fallback: Iterable[str] = ()) -> tuple[str, ...]:
    value = os.getenv(name, "").strip()
    return (value,) if value else tuple(fallback)


def default_feed_sources() -> list[FeedSource]:
    arxiv_query = "http://export.arxiv.org/api/query?search_query=all:{}&start=0&max_results=20"
    sources = [
        FeedSource("openai", "OpenAI Blog", ("https://openai.com/blog/rss.xml",), "industry", ("openai", "industry")),
        FeedSource(
            "anthropic",
            "Anthropic Blog",
            _env_urls(
                "ANTHROPIC_FEED_URL",
                (
                    "https://anthropic.com/news/feed_anthropic.xml",
                    "https://www.anthropic.com/news/feed_anthropic.xml",
                    "https://anthropic.com/blog/rss.xml",
                    "https://www.anthropic.com/blog/rss.xml",
                ),
            ),
            "industry",
            ("anthropic", "industry"),
            html_url="https://www.anthropic.com/news",
        ),
        FeedSource(
            "google-ai",
            "Google AI Blog",
            ("https://blog.google/technology/ai/rss/", "http://googleaiblog.blogspot.com/atom.xml"),
            "industry",
            ("google", "industry"),
        ),
        FeedSource("aifeed", "AI Feed", ("https://aifeed.dev/feed.xml",), "industry", ("aifeed", "industry")),
        FeedSource(
            "microsoft-research",
            "Microsoft Research Blog",
            ("https://www.microsoft.com/en-us/research/feed/",),
            "industry",
            ("microsoft", "industry"),
        ),
        FeedSource(
            "meta-ai",
            "Meta AI Blog",
            _env_urls(
                "META_FEED_URL",
                (
                    "https://research.facebook.com/feed/",
                    "https://ai.meta.com/blog/rss",
                    "https://ai.meta.com/blog/rss/",
                    "https://ai.facebook.com/blog/rss",
                    "https://ai.facebook.com/blog/rss/",
                ),
            ),
            "industry",
            ("meta", "industry"),
            html_url="https://ai.meta.com/blog/",
        ),
        FeedSource("manus", "Manus.ai", _env_urls("MANUS_FEED_URL"), "industry", ("manus", "industry")),
        FeedSource("deepseek", "DeepSeek", _env_urls("DEEPSEEK_FEED_URL"), "industry", ("deepseek", "industry")),
        FeedSource(
            "arxiv-hat",
            "arXiv: human-AI teaming",
            (arxiv_query.format("human%20AI%20teaming"),),
            "research",
            ("arxiv", "research"),
        ),
        FeedSource(
            "arxiv-human-ai-teams",
            "arXiv: human AI teams",
            (arxiv_query.format("human%20AI%20teams"),),
            "research",
            ("arxiv", "research"),
        ),
        FeedSource("arxiv-cs-cl", "arXiv: cs.CL", ("https://arxiv.org/rss/cs.CL",), "research", ("arxiv", "research")),
        FeedSource("arxiv-cs-lg", "arXiv: cs.LG", ("https://arxiv.org/rss/cs.LG",), "research", ("arxiv", "research")),
    ]

    acm = os.getenv("ACM_FEED_URL", "").strip()
    if acm:
        sources.append(FeedSource("acm", "ACM Digital Library", (acm,), "research", ("acm", "research")))

    for entry in os.getenv("EXTRA_FEEDS", "").split(","):
        entry = entry.strip()
        if entry:
            sources.append(FeedSource(f"extra-{slugify(entry)}", entry, (entry,), "industry", ("extra",)))
    return sources


def build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    return session


def get_with_backoff(
    session: requests.Session,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    backoff_seconds: float = 1.2,
    max_attempts: int = MAX_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> requests.Response:
    """GET ``url``, retrying 429 answers with a linearly growing pause."""
    response = session.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
    for attempt in range(1, max_attempts):
        if response.status_code != 429:
            break
        pause = backoff_seconds * attempt
        logger.debug("429 from %s; retrying in %.1fs", url, pause)
        sleep(pause)
        response = session.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
    return response


def parse_feed(xml_text: str) -> list[dict[str, str]]:
    parsed = feedparser.parse(xml_text)
    items = []
    for entry in parsed.entries:
        items.append(
            {
                "title": str(entry.get("title", "")).strip(),
                "url": str(entry.get("link", "")).strip(),
                "summary": str(entry.get("summary", "")).strip(),
                "date": str(entry.get("published") or entry.get("updated") or "").strip(),
            }
        )
    return items


def strip_tags(value: str) -> str:
    value = re.sub(r"<script[\s\S]*?</script>", " ", value, flags=re.I)
    value = re.sub(r"<style[\s\S]*?</style>", " ", value, flags=re.I)
    value = re.sub(r"<[^>]+>", " ", value)
    return re.sub(r"\s+", " ", value).strip()


def parse_listing_page(html_text: str, source_id: str) -> list[dict[str, str]]:
    """Pull article links out of a blog index page for sources without a working feed."""
    if source_id not in _LISTING_PATTERNS:
        return []
    pattern, skip_phrase = _LISTING_PATTERNS[source_id]

    items: list[dict[str, str]] = []
    seen: set[str] = set()
    for match in pattern.finditer(html_text):
        url = match.group(1)
        title = strip_tags(match.group(2))
        if len(title) < 8 or skip_phrase in title.lower() or url in seen:
            continue
        seen.add(url)
        items.append({"title": title, "url": url, "summary": "", "date": ""})
    return items


def _to_candidates(source: FeedSource, items: list[dict[str, str]], feed_limit: int) -> list[dict[str, Any]]:
    return [
        {
            "id": f"{source.id}-{slugify(item['title'])}",
            "title": item["title"],
            "url": item["url"],
            "summary": item["summary"],
            "publishedAt": item["date"],
            "source": source.source,
            "tags": list(source.tags),
            "feed": source.label,
        }
        for item in [i for i in items if i.get("title")][:feed_limit]
    ]


def fetch_feed(
    session: requests.Session,
    source: FeedSource,
    feed_limit: int = 50,
    sleep: Callable[[float], None] = time.sleep,
) -> list[dict[str, Any]]:
    last_error: FeedError | None = None
    for url in source.urls:
        response = get_with_backoff(session, url, sleep=sleep)
        if not response.ok:
            last_error = FeedError(f"Feed error {response.status_code} for {url}")
            continue
        return _to_candidates(source, parse_feed(response.text), feed_limit)

    if source.html_url:
        response = get_with_backoff(session, source.html_url, sleep=sleep)
        if response.ok:
            return _to_candidates(source, parse_listing_page(response.text, source.id), feed_limit)

    raise last_error or FeedError(f"No reachable URL for feed {source.label}")


def collect_candidates(
    session: requests.Session,
    sources: Iterable[FeedSource],
    feed_limit: int = 50,
    phrases: Iterable[str] = RELEVANCE_PHRASES,
    dry_run: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> list[dict[str, Any]]:
    phrases = tuple(phrases)
    candidates: list[dict[str, Any]] = []
    for source in sources:
        try:
            items = fetch_feed(session, source, feed_limit, sleep=sleep)
        except (FeedError, requests.RequestException) as exc:
            logger.warning("Feed failed: %s (%s)", source.label, exc)
            continue

        relevant = [item for item in items if is_item_relevant(item, phrases)]
        candidates.extend(relevant)
        if items and len(relevant) < len(items):
            logger.info("Feed %s: %d/%d relevant", source.label, len(relevant), len(items))
        else:
            logger.info("Feed %s: %d items", source.label, len(items))
        if not dry_run:
            sleep(FEED_PAUSE_SECONDS)
    return candidates


def candidates_payload(items: list[dict[str, Any]]) -> dict[str, Any]:
    return {"updatedAt": datetime.now(timezone.utc).isoformat(), "items": items}


def build_citation(paper: dict[str, Any]) -> str:
    authors = [a.get("name", "") for a in paper.get("authors") or [] if isinstance(a, dict)]
    if len(authors) == 1:
        author_text = authors[0]
    elif len(authors) == 2:
        author_text = f"{authors[0]} and {authors[1]}"
    elif len(authors) > 2:
        author_text = f"{authors[0]} et al."
    else:
        author_text = "Unknown"
    year = paper.get("year") or "n.d."
    venue = f" {paper['venue']}." if paper.get("venue") else ""
    return f"{author_text} ({year}). {paper.get('title', '')}.{venue}"


def fetch_paper(
    session: requests.Session,
    title: str,
    api_key: str | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, Any] | None:
    url = f"{SEMANTIC_SCHOLAR_SEARCH_URL}?query={quote(title)}&limit=1&fields={SEMANTIC_SCHOLAR_FIELDS}"
    headers = {"x-api-key": api_key} if api_key else None
    response = get_with_backoff(session, url, headers=headers, backoff_seconds=1.5, sleep=sleep)
    if not response.ok:
        raise FeedError(f"Semantic Scholar error {response.status_code}")
    data = response.json().get("data") or []
    return data[0] if data else None


def download_pdf(session: requests.Session, pdf_url: str, target: Path) -> Path:
    if target.exists():
        return target
    response = session.get(pdf_url, timeout=REQUEST_TIMEOUT)
    if not response.ok:
        raise FeedError(f"PDF download error {response.status_code}")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(response.content)
    return target


def enrich_citations(
    session: requests.Session,
    graph: dict[str, Any],
    papers_dir: Path,
    limit: int | None = None,
    dry_run: bool = False,
    api_key: str | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> tuple[int, int]:
    """Fill ``citation`` and ``url`` on nodes that have no url yet. Returns (processed, updated)."""
    processed = 0
    updated = 0
    for node in [n for n in graph.get("nodes", []) if not n.get("url")]:
        if limit is not None and processed >= limit:
            break
        processed += 1
        title = node.get("title", "")
        try:
            paper = fetch_paper(session, title, api_key=api_key, sleep=sleep)
        except (FeedError, requests.RequestException, ValueError) as exc:
            logger.warning("Failed: %s (%s)", title, exc)
            continue
        if not paper:
            logger.info("No match: %s", title)
            continue

        pdf_url = (paper.get("openAccessPdf") or {}).get("url")
        if pdf_url:
            filename = f"{slugify(title)}.pdf"
            try:
                if not dry_run:
                    download_pdf(session, pdf_url, papers_dir / filename)
                node["url"] = f"/papers/{quote(filename)}"
            except (FeedError, requests.RequestException, OSError) as exc:
                if paper.get("url"):
                    node["url"] = paper["url"]
                logger.warning("PDF unavailable for %s (%s)", title, exc)
        elif paper.get("url"):
            node["url"] = paper["url"]

        node["citation"] = build_citation(paper)
        updated += 1
        logger.info("Updated: %s", title)
        if not dry_run:
            sleep(PAPER_PAUSE_SECONDS)
    return processed, updated
