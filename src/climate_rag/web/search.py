"""
Web search fallback through a Perplexity-style chat-completions API.

Used when the institutional corpus answers weakly or the question is out
of its scope. The call is time-bounded; each returned citation gets its
page <title> fetched concurrently with a much shorter bound, degrading to
a title derived from the URL. Any failure returns an empty response: web
search never breaks a chat turn.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, Field

from climate_rag.config.settings import WebSearchConfig
from climate_rag.observability import TracerProtocol, genai_attributes, get_tracer

logger = logging.getLogger(__name__)

WEB_SYSTEM_PROMPT = (
    "You are a helpful research assistant. Provide concise, factual answers "
    "with sources. Prefer recent and authoritative information."
)

USER_AGENT = "climate-rag/1.0"
MAX_TITLE_CHARS = 80

_TITLE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_SITE_SUFFIX = re.compile(r"\s*[|–-]\s*[^|–-]+$")
_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)


class WebSearchResult(BaseModel):
    """One cited web page."""

    title: str
    url: str
    source: str = Field(default="web", description="Hostname without www.")
    snippet: str = ""


class WebSearchResponse(BaseModel):
    """Answer text plus the citations it was based on."""

    answer: str = ""
    results: list[WebSearchResult] = Field(default_factory=list)


def safe_hostname(url: str) -> str:
    host = urlparse(url).hostname if url else None
    if not host:
        return "web"
    return re.sub(r"^www\.", "", host)


def fallback_title(url: str) -> str:
    """Last path segment made readable, or the hostname."""
    host = safe_hostname(url)
    segments = [s for s in urlparse(url).path.split("/") if s]
    if not segments:
        return host
    candidate = re.sub(r"\.\w+$", "", re.sub(r"[-_]", " ", segments[-1])).strip()
    return candidate or host


def clean_title(raw: str) -> str:
    """Strip the trailing site name ("Page - Site") and truncate."""
    return _SITE_SUFFIX.sub("", raw.strip())[:MAX_TITLE_CHARS]


class WebSearchClient:
    """
    Synchronous web search client.

    Dependencies are INJECTED: pass an httpx.Client (for example one built
    on httpx.MockTransport) to test without network access.
    """

    def __init__(
        self,
        config: WebSearchConfig | None = None,
        client: httpx.Client | None = None,
        tracer: TracerProtocol | None = None,
    ):
        self.config = config or WebSearchConfig.from_env()
        self._client = client or httpx.Client(headers={"User-Agent": USER_AGENT})
        self._tracer = tracer

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def close(self) -> None:
        self._client.close()

    def fetch_title(self, url: str) -> str | None:
        """Page title, or None on timeout, HTTP error or missing <title>."""
        try:
            response = self._client.get(
                url,
                timeout=self.config.title_timeout_seconds,
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            logger.debug(f"Title fetch failed for {url}: {e}")
            return None

        if response.status_code >= 400:
            return None

        match = _TITLE.search(response.text)
        if not match:
            return None
        return clean_title(match.group(1)) or None

    def _to_result(self, url: str) -> WebSearchResult:
        title = self.fetch_title(url) or fallback_title(url)
        return WebSearchResult(title=title, url=url, source=safe_hostname(url))

    def search(self, query: str, limit: int = 5) -> WebSearchResponse:
        """Ask the web search model and resolve its citations."""
        trimmed = (query or "").strip()
        if not trimmed or not self.enabled:
            return WebSearchResponse()

        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": WEB_SYSTEM_PROMPT},
                {"role": "user", "content": trimmed},
            ],
            "max_tokens": self.config.max_tokens,
            "temperature": 0.2,
            "return_citations": True,
            "return_related_questions": False,
        }

        tracer = self._tracer or get_tracer()
        with tracer.start_span(
            "web_search", attributes=genai_attributes("perplexity", self.config.model)
        ):
            try:
                response = self._client.post(
                    self.config.api_url,
                    headers={
                        "Authorization": f"Bearer {self.config.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                    timeout=self.config.timeout_seconds,
                )
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"Web search failed: {e}")
                return WebSearchResponse()

        if not isinstance(data, dict):
            logger.warning(f"Web search returned unexpected payload: {type(data).__name__}")
            return WebSearchResponse()

        choices = data.get("choices") or [{}]
        answer = (choices[0].get("message") or {}).get("content") or ""
        citations = data.get("citations") if isinstance(data.get("citations"), list) else []
        urls = [u for u in citations if isinstance(u, str) and _HTTP_URL.match(u)][:limit]

        if not urls:
            return WebSearchResponse(answer=answer)

        with ThreadPoolExecutor(max_workers=len(urls)) as pool:
            results = list(pool.map(self._to_result, urls))

        logger.info(f"Web search returned {len(results)} sources")
        return WebSearchResponse(answer=answer, results=results)
