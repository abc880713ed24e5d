"""Shared test doubles for discovery, model calls and stores."""

from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Union

import pytest

from sentinel.models.config import AutomationConfig
from sentinel.models.document import Document
from sentinel.models.scoring import ModelPricing
from sentinel.services.budget import BudgetGuard
from sentinel.services.checkpoint_service import CheckpointService, InMemoryKVStore
from sentinel.services.document_store import SqlAlchemyDocumentStore
from sentinel.services.llm.providers.base import LLMProvider, LLMResponse
from sentinel.services.providers.base import DiscoveryProvider
from sentinel.services.scoring_service import TwoStageScorer
from sentinel.utils.rate_limiter import RateLimiter

BASE_DATE = datetime(2025, 1, 15, 12, 0, 0)

# 10 input tokens at $1000/MTok: every fake call costs exactly $0.01
FAKE_PRICING = ModelPricing(input_per_mtok=1000.0, output_per_mtok=0.0)
FAKE_CALL_COST = 0.01

Reply = Union[str, Exception]


def make_document(document_id: str, hours_ago: int = 0, title: Optional[str] = None) -> Document:
    return Document(
        document_id=document_id,
        title=title or f"Paper {document_id}",
        abstract=f"Abstract of {document_id}.",
        authors=["A. Author"],
        categories=["cs.LG"],
        published_date=BASE_DATE - timedelta(hours=hours_ago),
        pdf_url=f"https://arxiv.org/pdf/{document_id}",
        abs_url=f"https://arxiv.org/abs/{document_id}",
    )


class FakeDiscovery(DiscoveryProvider):
    """Returns canned results per query; queries listed in failing raise"""

    def __init__(
        self,
        results: Optional[Dict[str, List[Document]]] = None,
        failing: Iterable[str] = (),
    ):
        self.results = results or {}
        self.failing = set(failing)
        self.queries: List[str] = []

    @property
    def name(self) -> str:
        return "fake"

    def validate_query(self, query: str) -> str:
        return query

    async def search(
        self,
        query: str,
        max_results: int = 100,
        start: int = 0,
        sort_by: str = "submittedDate",
        sort_order: str = "descending",
    ) -> List[Document]:
        self.queries.append(query)
        if query in self.failing:
            raise RuntimeError(f"catalog unavailable for {query}")
        return list(self.results.get(query, []))


class FakeLLM(LLMProvider):
    """Scripted model: reply_fn maps the prompt to a reply or an exception"""

    def __init__(
        self,
        reply_fn: Callable[[str], Reply],
        model: str = "fake-model",
        input_tokens: int = 10,
        output_tokens: int = 0,
        pricing: ModelPricing = FAKE_PRICING,
    ):
        self.reply_fn = reply_fn
        self._model = model
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.pricing = pricing
        self.prompts: List[str] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, prompt: str, max_tokens: int = 1024, temperature: float = 0.0) -> LLMResponse:
        self.prompts.append(prompt)
        reply = self.reply_fn(prompt)
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(
            content=reply,
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            model=self._model,
            provider=self.name,
            latency_ms=1.0,
        )

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return self.pricing.cost(input_tokens, output_tokens)


def triage_by_title(prompt: str) -> str:
    """Titles containing 'Relevant' score high, everything else low"""
    return "0.9" if "Relevant" in prompt else "0.1"


def no_wait_limiter(name: str = "test") -> RateLimiter:
    return RateLimiter(0, 0, 0, name=name)


def make_scorer_factory(
    triage: FakeLLM,
    summary: FakeLLM,
    ceiling_usd: float = 1.0,
) -> Callable[[], TwoStageScorer]:
    def factory() -> TwoStageScorer:
        return TwoStageScorer(
            triage,
            summary,
            BudgetGuard(ceiling_usd),
            rate_limiter=no_wait_limiter("anthropic"),
        )

    return factory


@pytest.fixture
def config() -> AutomationConfig:
    return AutomationConfig()


@pytest.fixture
def kv() -> InMemoryKVStore:
    return InMemoryKVStore()


@pytest.fixture
def checkpoint_service(kv) -> CheckpointService:
    return CheckpointService(kv, ttl_seconds=3600)


@pytest.fixture
def store(tmp_path) -> SqlAlchemyDocumentStore:
    store = SqlAlchemyDocumentStore(f"sqlite:///{tmp_path / 'sentinel.db'}")
    yield store
    store.close()
