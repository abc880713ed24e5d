import asyncio
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp
import feedparser
import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from sentinel.models.document import Document
from sentinel.observability.metrics import DOCUMENTS_DISCOVERED
from sentinel.services.providers.base import DiscoveryProvider
from sentinel.utils.exceptions import APIParameterError, DiscoveryError, RateLimitError
from sentinel.utils.hash import normalize_document_id
from sentinel.utils.rate_limiter import RateLimiter, arxiv_rate_limiter

logger = structlog.get_logger()


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, DiscoveryError) and not isinstance(error, APIParameterError)


def _clean_text(value: Optional[str]) -> str:
    """Collapse the hard line wraps arXiv puts in titles and abstracts"""
    return re.sub(r"\s+", " ", value or "").strip()


class ArxivProvider(DiscoveryProvider):
    """Search for documents using the arXiv Atom API"""

    BASE_URL = "https://export.arxiv.org/api/query"

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        base_url: str = BASE_URL,
        max_attempts: int = 2,
        timeout_seconds: int = 30,
    ):
        # arXiv asks for one request every 3 seconds
        self.rate_limiter = rate_limiter or arxiv_rate_limiter()
        self.base_url = base_url
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds
        self.retry_wait = wait_exponential(multiplier=1, min=3, max=10)

    @property
    def name(self) -> str:
        """Provider name"""
        return "arxiv"

    def validate_query(self, query: str) -> str:
        """Validate arXiv query syntax"""
        # Field prefixes (cat:, ti:, au:), boolean operators and grouping are
        # allowed; shell metacharacters such as $ ; ` are not
        if not query or not re.match(r'^[a-zA-Z0-9\s\-_+.,"():|*]+$', query):
            raise ValueError("Invalid arXiv query syntax: contains forbidden characters")
        return query

    async def search(
        self,
        query: str,
        max_results: int = 100,
        start: int = 0,
        sort_by: str = "submittedDate",
        sort_order: str = "descending",
    ) -> List[Document]:
        """Search arXiv, returning [] on any failure"""

        # 1. Validate Query
        try:
            safe_query = self.validate_query(query)
        except ValueError as e:
            logger.error("invalid_arxiv_query", query=query, error=str(e))
            return []

        # 2. Build Params
        params = self._build_query_params(safe_query, max_results, start, sort_by, sort_order)

        # 3. Fetch (rate limited, retried on transient errors)
        try:
            body = await self._fetch_with_retry(params)
        except DiscoveryError as e:
            logger.error(
                "arxiv_search_failed",
                query=query,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        # 4. Parse
        try:
            documents = self._parse_feed(body)
        except APIParameterError as e:
            logger.error("arxiv_query_rejected", query=query, error=str(e))
            return []

        DOCUMENTS_DISCOVERED.labels(provider=self.name).inc(len(documents))
        logger.info(
            "documents_discovered",
            query=query,
            count=len(documents),
            provider=self.name,
        )
        return documents

    def _build_query_params(
        self,
        query: str,
        max_results: int,
        start: int,
        sort_by: str,
        sort_order: str,
    ) -> Dict[str, str]:
        """Build arXiv query parameters"""
        return {
            "search_query": query,
            "start": str(start),
            "max_results": str(max_results),
            "sortBy": sort_by,
            # arXiv requires the full word, "desc" is rejected
            "sortOrder": sort_order,
        }

    async def _fetch_with_retry(self, params: Dict[str, str]) -> str:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                # Every attempt is an outbound call and must respect the spacing
                await self.rate_limiter.acquire()
                return await self._fetch(params)
        raise DiscoveryError("arXiv request was not attempted")  # pragma: no cover

    async def _fetch(self, params: Dict[str, str]) -> str:
        """Issue one GET and return the Atom body"""
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    self.base_url,
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                ) as response:
                    if response.status in (403, 429):
                        raise RateLimitError(f"arXiv throttled request ({response.status})")
                    if response.status >= 500:
                        raise DiscoveryError(f"arXiv server error: {response.status}")
                    if response.status != 200:
                        text = await response.text()
                        raise APIParameterError(
                            f"arXiv API returned status {response.status}: {text[:200]}"
                        )
                    return await response.text()
        except aiohttp.ClientError as e:
            raise DiscoveryError(f"arXiv request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise DiscoveryError("arXiv request timed out") from e

    def _parse_feed(self, body: str) -> List[Document]:
        feed = feedparser.parse(body)

        if getattr(feed, "bozo", False):
            # bozo often triggers on minor XML issues while data is usable
            logger.warning("arxiv_feed_parse_warning", error=str(feed.get("bozo_exception")))

        documents = []
        for entry in feed.entries:
            entry_id = entry.get("id", "")

            # Invalid parameters come back as a single error entry
            if "/api/errors" in entry_id:
                raise APIParameterError(_clean_text(entry.get("summary")) or entry_id)

            try:
                document = self._parse_entry(entry)
            except (ValidationError, ValueError, TypeError) as e:
                logger.warning("arxiv_entry_parse_error", error=str(e), entry_id=entry_id or "unknown")
                continue

            if document is None:
                logger.warning("arxiv_entry_dropped", entry_id=entry_id or "unknown")
                continue

            documents.append(document)

        return documents

    def _parse_entry(self, entry: Any) -> Optional[Document]:
        """Map one Atom entry to a Document, None if a required field is missing"""
        document_id = normalize_document_id(entry.get("id", ""))
        title = _clean_text(entry.get("title"))
        abstract = _clean_text(entry.get("summary"))

        if not document_id or not title or not abstract:
            return None

        authors = [
            a.get("name", "").strip()
            for a in entry.get("authors", [])
            if a.get("name", "").strip()
        ]
        categories = [t.get("term") for t in entry.get("tags", []) if t.get("term")]

        published = None
        published_parsed = entry.get("published_parsed")
        if published_parsed:
            published = datetime(*published_parsed[:6])

        pdf_url = ""
        abs_url = ""
        for link in entry.get("links", []):
            href = link.get("href", "")
            if link.get("type") == "application/pdf" or link.get("title") == "pdf":
                pdf_url = pdf_url or href
            elif link.get("rel") == "alternate":
                abs_url = abs_url or href

        return Document(
            document_id=document_id,
            title=title,
            abstract=abstract,
            authors=authors,
            categories=categories,
            published_date=published,
            pdf_url=self._https(pdf_url) or f"https://arxiv.org/pdf/{document_id}",
            abs_url=self._https(abs_url) or f"https://arxiv.org/abs/{document_id}",
        )

    @staticmethod
    def _https(url: str) -> str:
        if url.startswith("http://"):
            return url.replace("http://", "https://", 1)
        return url


class ArxivQueryBuilder:
    """Compose arXiv search_query expressions.

    Example:
        ArxivQueryBuilder().add_category("cs.CR").add_keyword("fuzzing").build("AND")
        # -> "cat:cs.CR AND all:fuzzing"
    """

    def __init__(self) -> None:
        self.terms: List[str] = []

    def add_category(self, category: str) -> "ArxivQueryBuilder":
        self.terms.append(f"cat:{category}")
        return self

    def add_keyword(self, keyword: str) -> "ArxivQueryBuilder":
        self.terms.append(f"all:{self._quote(keyword)}")
        return self

    def add_title_keyword(self, keyword: str) -> "ArxivQueryBuilder":
        self.terms.append(f"ti:{self._quote(keyword)}")
        return self

    def add_abstract_keyword(self, keyword: str) -> "ArxivQueryBuilder":
        self.terms.append(f"abs:{self._quote(keyword)}")
        return self

    def add_author(self, author: str) -> "ArxivQueryBuilder":
        self.terms.append(f"au:{self._quote(author)}")
        return self

    def build(self, operator: str = "OR") -> str:
        if operator not in ("AND", "OR"):
            raise ValueError("operator must be AND or OR")
        return f" {operator} ".join(self.terms)

    def reset(self) -> "ArxivQueryBuilder":
        self.terms = []
        return self

    @staticmethod
    def _quote(term: str) -> str:
        # Multi-word phrases must be quoted or arXiv ORs the words
        term = term.strip()
        return f'"{term}"' if " " in term else term
