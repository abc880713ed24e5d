"""Tests for the arXiv Atom discovery client."""

from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest
from tenacity import wait_none

from sentinel.services.providers.arxiv import ArxivProvider, ArxivQueryBuilder
from sentinel.utils.exceptions import APIParameterError, DiscoveryError, RateLimitError
from sentinel.utils.rate_limiter import RateLimiter

ATOM_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">
  <title type="html">ArXiv Query</title>
  <entry>
    <id>http://arxiv.org/abs/2401.00001v2</id>
    <published>2024-01-02T18:00:00Z</published>
    <title>Fuzzing   Large
      Language Models</title>
    <summary>  We fuzz
      things.  </summary>
    <author><name>Alice Smith</name></author>
    <author><name>Bob Jones</name></author>
    <link href="http://arxiv.org/abs/2401.00001v2" rel="alternate" type="text/html"/>
    <link title="pdf" href="http://arxiv.org/pdf/2401.00001v2" rel="related" type="application/pdf"/>
    <category term="cs.CR" scheme="http://arxiv.org/schemas/atom"/>
    <category term="cs.LG" scheme="http://arxiv.org/schemas/atom"/>
  </entry>
  <entry>
    <id>http://arxiv.org/abs/2401.00002v1</id>
    <published>2024-01-01T09:30:00Z</published>
    <title>No Links Paper</title>
    <summary>Abstract without links.</summary>
    <author><name>Carol</name></author>
  </entry>
  <entry>
    <id>http://arxiv.org/abs/2401.00003v1</id>
    <published>2024-01-01T09:30:00Z</published>
    <title>Missing abstract</title>
  </entry>
</feed>
"""

ERROR_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <id>http://arxiv.org/api/errors#incorrect_id_format_for_1234</id>
    <title>Error</title>
    <summary>incorrect id format for 1234</summary>
  </entry>
</feed>
"""


@pytest.fixture
def provider():
    return ArxivProvider(rate_limiter=RateLimiter(0, name="arxiv-test"), max_attempts=2)


def test_validate_query(provider):
    assert provider.validate_query("cat:cs.CR AND all:fuzzing") == "cat:cs.CR AND all:fuzzing"
    assert provider.validate_query('ti:"prompt injection"') == 'ti:"prompt injection"'

    with pytest.raises(ValueError):
        provider.validate_query("test; rm -rf /")
    with pytest.raises(ValueError):
        provider.validate_query("$HOME")
    with pytest.raises(ValueError):
        provider.validate_query("")


def test_build_query_params(provider):
    params = provider._build_query_params("cat:cs.CR", 50, 10, "submittedDate", "descending")

    assert params == {
        "search_query": "cat:cs.CR",
        "start": "10",
        "max_results": "50",
        "sortBy": "submittedDate",
        "sortOrder": "descending",
    }


def test_parse_feed_maps_entries(provider):
    documents = provider._parse_feed(ATOM_FEED)

    # Third entry has no abstract and is dropped on its own
    assert [d.document_id for d in documents] == ["2401.00001", "2401.00002"]

    first = documents[0]
    assert first.title == "Fuzzing Large Language Models"
    assert first.abstract == "We fuzz things."
    assert first.authors == ["Alice Smith", "Bob Jones"]
    assert first.categories == ["cs.CR", "cs.LG"]
    assert first.published_date == datetime(2024, 1, 2, 18, 0, 0)
    assert first.pdf_url == "https://arxiv.org/pdf/2401.00001v2"
    assert first.abs_url == "https://arxiv.org/abs/2401.00001v2"


def test_parse_feed_falls_back_to_constructed_links(provider):
    second = provider._parse_feed(ATOM_FEED)[1]

    assert second.pdf_url == "https://arxiv.org/pdf/2401.00002"
    assert second.abs_url == "https://arxiv.org/abs/2401.00002"


def test_parse_feed_raises_on_error_entry(provider):
    with pytest.raises(APIParameterError, match="incorrect id format"):
        provider._parse_feed(ERROR_FEED)


@pytest.mark.asyncio
async def test_search_returns_documents(provider):
    with patch.object(provider, "_fetch", AsyncMock(return_value=ATOM_FEED)) as fetch:
        documents = await provider.search("cat:cs.CR", max_results=5)

    assert len(documents) == 2
    params = fetch.call_args.args[0]
    assert params["search_query"] == "cat:cs.CR"
    assert params["max_results"] == "5"
    assert provider.rate_limiter.calls == 1


@pytest.mark.asyncio
async def test_search_invalid_query_returns_empty_without_request(provider):
    with patch.object(provider, "_fetch", AsyncMock()) as fetch:
        assert await provider.search("bad; query") == []

    fetch.assert_not_called()


@pytest.mark.asyncio
async def test_search_degrades_to_empty_after_retries():
    provider = ArxivProvider(rate_limiter=RateLimiter(0), max_attempts=2)
    failing = AsyncMock(side_effect=DiscoveryError("arXiv server error: 503"))

    provider.retry_wait = wait_none()

    with patch.object(provider, "_fetch", failing):
        documents = await provider.search("cat:cs.CR")

    assert documents == []
    assert failing.call_count == 2
    # Every attempt is rate limited
    assert provider.rate_limiter.calls == 2


@pytest.mark.asyncio
async def test_search_does_not_retry_parameter_errors(provider):
    failing = AsyncMock(side_effect=APIParameterError("arXiv API returned status 400"))

    with patch.object(provider, "_fetch", failing):
        assert await provider.search("cat:cs.CR") == []

    assert failing.call_count == 1


@pytest.mark.asyncio
async def test_search_retries_throttling_then_succeeds():
    provider = ArxivProvider(rate_limiter=RateLimiter(0), max_attempts=2)
    flaky = AsyncMock(side_effect=[RateLimitError("throttled (429)"), ATOM_FEED])

    provider.retry_wait = wait_none()

    with patch.object(provider, "_fetch", flaky):
        documents = await provider.search("cat:cs.CR")

    assert len(documents) == 2
    assert flaky.call_count == 2


@pytest.mark.asyncio
async def test_search_error_feed_returns_empty(provider):
    with patch.object(provider, "_fetch", AsyncMock(return_value=ERROR_FEED)):
        assert await provider.search("id_list:1234") == []


class TestArxivQueryBuilder:
    def test_build_and(self):
        query = ArxivQueryBuilder().add_category("cs.CR").add_keyword("fuzzing").build("AND")
        assert query == "cat:cs.CR AND all:fuzzing"

    def test_quotes_phrases(self):
        query = (
            ArxivQueryBuilder()
            .add_title_keyword("prompt injection")
            .add_author("Smith")
            .add_abstract_keyword("jailbreak")
            .build()
        )
        assert query == 'ti:"prompt injection" OR au:Smith OR abs:jailbreak'

    def test_rejects_unknown_operator(self):
        with pytest.raises(ValueError):
            ArxivQueryBuilder().add_category("cs.AI").build("XOR")

    def test_reset(self):
        builder = ArxivQueryBuilder().add_category("cs.AI")
        assert builder.reset().build() == ""
