"""Checkpointed daily automation.

Usage:
    automation = build_automation(config)
    result = await automation.run()
    if result.state == RunState.BATCH_PAUSED:
        ...  # invoke again later

Each invocation handles at most ``batch_cap`` documents, saving the
checkpoint after every document, so a run killed at any point resumes from
the last saved document without re-scoring (or re-paying for) earlier ones.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional

import structlog

from sentinel.models.checkpoint import Checkpoint
from sentinel.models.config import AutomationConfig
from sentinel.models.document import Document, StoredDocument, User
from sentinel.observability.metrics import AUTOMATION_INVOCATIONS, DOCUMENTS_PROCESSED
from sentinel.orchestration.result import AutomationResult, RunState
from sentinel.services.budget import BudgetGuard, is_ceiling_exceeded
from sentinel.services.checkpoint_service import CheckpointService
from sentinel.services.dedup_service import merge_documents
from sentinel.services.document_store import DocumentStore, SqlAlchemyDocumentStore
from sentinel.services.llm.providers.anthropic import AnthropicProvider
from sentinel.services.providers.arxiv import ArxivProvider
from sentinel.services.providers.base import DiscoveryProvider
from sentinel.services.scoring_service import TwoStageScorer
from sentinel.utils.exceptions import StorageError
from sentinel.utils.rate_limiter import RateLimiter

logger = structlog.get_logger()


def utc_today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class DailyAutomation:
    """Walks every active user's topics once per day.

    Invocations are not re-entrant; the scheduler serializes them.

    Attributes:
        state: RunState of the most recent invocation
    """

    def __init__(
        self,
        config: AutomationConfig,
        store: DocumentStore,
        checkpoint_service: CheckpointService,
        discovery: DiscoveryProvider,
        scorer_factory: Callable[[], TwoStageScorer],
    ) -> None:
        """Initialize the automation.

        Args:
            config: Validated automation configuration
            store: Relational store for users, topics and documents
            checkpoint_service: Daily checkpoint persistence
            discovery: Catalog search client
            scorer_factory: Builds a fresh scorer (and cost ledger) per invocation
        """
        self.config = config
        self.store = store
        self.checkpoint_service = checkpoint_service
        self.discovery = discovery
        self.scorer_factory = scorer_factory
        self.budget = BudgetGuard(config.budget.daily_ceiling_usd)
        self.state = RunState.NOT_STARTED

    async def run(self, today: Optional[str] = None) -> AutomationResult:
        """Run one invocation for a day.

        Args:
            today: Day as YYYY-MM-DD (default: current UTC date)

        Returns:
            AutomationResult with BATCH_PAUSED or DAY_COMPLETE

        Raises:
            CheckpointStoreError: If the checkpoint store cannot be read
        """
        date = today or utc_today()
        checkpoint = self.checkpoint_service.load(date) or Checkpoint.new(date)

        if checkpoint.completed:
            logger.info("automation_day_already_complete", date=date)
            self.state = RunState.DAY_COMPLETE
            return AutomationResult(
                state=RunState.DAY_COMPLETE,
                date=date,
                error_count=len(checkpoint.errors),
                checkpoint=checkpoint,
            )

        self.state = RunState.RUNNING
        checkpoint.documents_processed_this_invocation = 0
        prior_spent = checkpoint.total_cost_usd
        scorer = self.scorer_factory()

        logger.info(
            "automation_started",
            date=date,
            prior_spent_usd=round(prior_spent, 4),
            last_completed_user_id=checkpoint.last_completed_user_id,
            resume_user_id=checkpoint.current_user_id,
        )

        if is_ceiling_exceeded(checkpoint.total_cost_usd, self.budget.ceiling_usd):
            self._halt_for_budget(checkpoint)
            self._save(checkpoint)
            return self._finish(RunState.DAY_COMPLETE, checkpoint, prior_spent)

        try:
            users = self.store.list_active_users()
        except StorageError as e:
            logger.error("list_users_failed", error=str(e))
            checkpoint.errors.append(f"Failed to list users: {e}")
            self._save(checkpoint)
            return self._finish(RunState.BATCH_PAUSED, checkpoint, prior_spent)

        for user in users:
            if checkpoint.is_user_done(user.id):
                continue

            if checkpoint.documents_processed_this_invocation >= self.config.budget.batch_cap:
                self._save(checkpoint)
                return self._finish(RunState.BATCH_PAUSED, checkpoint, prior_spent)

            try:
                paused = await self._process_user(user, checkpoint, scorer, prior_spent)
            except Exception as e:
                logger.error(
                    "user_processing_failed",
                    user_id=user.id,
                    username=user.username,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                checkpoint.errors.append(f"{user.username} (user {user.id}): {e}")
                checkpoint.mark_user_finished(user.id)
                self._save(checkpoint)
                continue

            if paused:
                self._save(checkpoint)
                return self._finish(RunState.BATCH_PAUSED, checkpoint, prior_spent)

            checkpoint.users_processed += 1
            checkpoint.mark_user_finished(user.id)
            self._save(checkpoint)
            logger.info(
                "user_completed",
                user_id=user.id,
                total_cost_usd=round(checkpoint.total_cost_usd, 4),
            )

            if is_ceiling_exceeded(checkpoint.total_cost_usd, self.budget.ceiling_usd):
                self._halt_for_budget(checkpoint)
                break

        checkpoint.completed = True
        self._save(checkpoint)
        return self._finish(RunState.DAY_COMPLETE, checkpoint, prior_spent)

    async def run_until_complete(
        self,
        today: Optional[str] = None,
        max_invocations: int = 100,
    ) -> AutomationResult:
        """Invoke run() repeatedly while it pauses on the batch cap"""
        date = today or utc_today()
        result = await self.run(date)
        invocations = 1
        while result.state == RunState.BATCH_PAUSED and invocations < max_invocations:
            result = await self.run(date)
            invocations += 1

        logger.info(
            "automation_run_until_complete_finished",
            date=date,
            invocations=invocations,
            state=result.state.value,
        )
        return result

    async def _process_user(
        self,
        user: User,
        checkpoint: Checkpoint,
        scorer: TwoStageScorer,
        prior_spent: float,
    ) -> bool:
        """Walk one user's documents; True if the batch cap paused the walk"""
        topics = self.store.list_enabled_topics(user.id)
        if not topics:
            logger.info("user_has_no_topics", user_id=user.id)
            return False

        discovery = self.config.discovery
        result_lists = []
        # One query per topic keeps each query within the catalog's limits
        for topic in topics:
            result_lists.append(
                await self.discovery.search(
                    topic.query,
                    max_results=discovery.max_results_per_topic,
                    sort_by=discovery.sort_by,
                    sort_order=discovery.sort_order,
                )
            )
        documents = merge_documents(result_lists)

        documents = self._resume_position(user, checkpoint, documents)
        topic_names = [t.name for t in topics]

        logger.info(
            "user_processing_started",
            user_id=user.id,
            topics=len(topics),
            documents=len(documents),
        )

        for document in documents:
            if checkpoint.documents_processed_this_invocation >= self.config.budget.batch_cap:
                logger.info(
                    "batch_cap_reached",
                    user_id=user.id,
                    batch_cap=self.config.budget.batch_cap,
                    last_document_key=checkpoint.last_document_key,
                )
                return True

            try:
                await self._process_document(
                    user, document, topic_names, checkpoint, scorer, prior_spent
                )
            except StorageError as e:
                logger.error(
                    "document_storage_failed",
                    document_id=document.document_id,
                    user_id=user.id,
                    error=str(e),
                )
                DOCUMENTS_PROCESSED.labels(outcome="error").inc()
                checkpoint.errors.append(f"{document.document_id}: {e}")

            checkpoint.documents_processed_this_invocation += 1
            checkpoint.mark_document(user.id, document.document_id)
            self._save(checkpoint)

        return False

    def _resume_position(
        self,
        user: User,
        checkpoint: Checkpoint,
        documents: List[Document],
    ) -> List[Document]:
        """Drop documents already handled for a user left mid-walk"""
        if checkpoint.current_user_id != user.id:
            checkpoint.current_user_id = user.id
            checkpoint.last_document_key = None
            checkpoint.documents_found += len(documents)
            return documents

        resume_key = checkpoint.last_document_key
        if resume_key is None:
            return documents

        keys = [d.document_id for d in documents]
        if resume_key in keys:
            return documents[keys.index(resume_key) + 1:]

        # Catalog results shifted since the pause; stored documents are not re-scored
        logger.warning("resume_key_not_found", user_id=user.id, resume_key=resume_key)
        return documents

    async def _process_document(
        self,
        user: User,
        document: Document,
        topic_names: List[str],
        checkpoint: Checkpoint,
        scorer: TwoStageScorer,
        prior_spent: float,
    ) -> None:
        if self.store.document_exists(document.document_id):
            self.store.ensure_user_status(user.id, document.document_id)
            checkpoint.documents_existing += 1
            DOCUMENTS_PROCESSED.labels(outcome="existing").inc()
            return

        result = await scorer.score_and_summarize(
            document.title,
            document.abstract,
            topic_names,
            relevance_threshold=self.config.budget.relevance_threshold,
            prior_spent_usd=prior_spent,
        )

        checkpoint.total_cost_usd += result.total_cost_usd
        self.budget.observe(checkpoint.total_cost_usd)

        if result.summary is None:
            checkpoint.documents_skipped += 1
            DOCUMENTS_PROCESSED.labels(outcome=result.skip_reason.value).inc()
            return

        self.store.insert_document(
            StoredDocument(
                **document.model_dump(),
                summary=result.summary,
                relevance_score=result.relevance_score,
                content_hash=result.content_hash,
                collected_for_user_id=user.id,
                summary_model=self.config.ai.summary_model,
            )
        )
        checkpoint.documents_summarized += 1
        DOCUMENTS_PROCESSED.labels(outcome="summarized").inc()

    def _halt_for_budget(self, checkpoint: Checkpoint) -> None:
        message = f"Budget exceeded at ${checkpoint.total_cost_usd:.4f}"
        logger.warning(
            "budget_exceeded_halting",
            total_cost_usd=round(checkpoint.total_cost_usd, 4),
            ceiling_usd=self.budget.ceiling_usd,
        )
        checkpoint.errors.append(message)
        checkpoint.budget_exhausted = True
        checkpoint.completed = True

    def _save(self, checkpoint: Checkpoint) -> None:
        if not self.checkpoint_service.save(checkpoint):
            logger.warning("checkpoint_not_persisted", date=checkpoint.date)

    def _finish(
        self,
        state: RunState,
        checkpoint: Checkpoint,
        prior_spent: float,
    ) -> AutomationResult:
        self.state = state
        AUTOMATION_INVOCATIONS.labels(state=state.value).inc()
        result = AutomationResult(
            state=state,
            date=checkpoint.date,
            documents_processed=checkpoint.documents_processed_this_invocation,
            cost_usd=checkpoint.total_cost_usd - prior_spent,
            error_count=len(checkpoint.errors),
            checkpoint=checkpoint.model_copy(deep=True),
        )
        logger.info(
            "automation_finished",
            date=result.date,
            state=state.value,
            documents_processed=result.documents_processed,
            cost_usd=round(result.cost_usd, 6),
            error_count=result.error_count,
        )
        return result


def build_automation(
    config: AutomationConfig,
    store: Optional[DocumentStore] = None,
    checkpoint_service: Optional[CheckpointService] = None,
) -> DailyAutomation:
    """Wire the production collaborators from configuration."""
    rate = config.discovery.rate_limit
    discovery = ArxivProvider(
        rate_limiter=RateLimiter(
            rate.min_interval_ms, rate.jitter_min_ms, rate.jitter_max_ms, name="arxiv"
        ),
        base_url=config.discovery.base_url,
        max_attempts=config.discovery.max_attempts,
        timeout_seconds=config.discovery.timeout_seconds,
    )

    ai = config.ai
    triage_provider = AnthropicProvider(
        api_key=ai.api_key, model=ai.triage_model, pricing=ai.triage_pricing, timeout=ai.timeout
    )
    summary_provider = AnthropicProvider(
        api_key=ai.api_key, model=ai.summary_model, pricing=ai.summary_pricing, timeout=ai.timeout
    )
    # One limiter for both stages: they hit the same API
    ai_limiter = RateLimiter(
        ai.rate_limit.min_interval_ms,
        ai.rate_limit.jitter_min_ms,
        ai.rate_limit.jitter_max_ms,
        name="anthropic",
    )

    def scorer_factory() -> TwoStageScorer:
        return TwoStageScorer(
            triage_provider,
            summary_provider,
            BudgetGuard(config.budget.daily_ceiling_usd),
            rate_limiter=ai_limiter,
            triage_max_tokens=ai.triage_max_tokens,
            summary_max_tokens=ai.summary_max_tokens,
        )

    return DailyAutomation(
        config=config,
        store=store or SqlAlchemyDocumentStore(config.database.url),
        checkpoint_service=checkpoint_service or CheckpointService.from_config(config.checkpoint),
        discovery=discovery,
        scorer_factory=scorer_factory,
    )
