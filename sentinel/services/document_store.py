"""
Relational store for users, topics, documents and per-user document status.

The orchestrator depends only on the DocumentStore contract; the SQLAlchemy
implementation backs it with four tables (users, topics, papers,
user_paper_status). All statements use bound parameters.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

import structlog
from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from sentinel.models.document import StoredDocument, Topic, User
from sentinel.utils.exceptions import StorageError

logger = structlog.get_logger()


class Base(DeclarativeBase):
    pass


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(128), unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class TopicModel(Base):
    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    name: Mapped[str] = mapped_column(String(256))
    query: Mapped[str] = mapped_column(Text)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class PaperModel(Base):
    __tablename__ = "papers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    arxiv_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    title: Mapped[str] = mapped_column(Text)
    authors_json: Mapped[str] = mapped_column(Text, default="[]")
    abstract: Mapped[str] = mapped_column(Text)
    categories_json: Mapped[str] = mapped_column(Text, default="[]")
    published_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    pdf_url: Mapped[str] = mapped_column(String(512), default="")
    abs_url: Mapped[str] = mapped_column(String(512), default="")

    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    summary_model: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    summary_generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    relevance_score: Mapped[float] = mapped_column(Float, default=0.0)
    content_hash: Mapped[str] = mapped_column(String(64), index=True)
    collected_for_user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class UserPaperStatusModel(Base):
    __tablename__ = "user_paper_status"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    paper_id: Mapped[int] = mapped_column(ForeignKey("papers.id"), primary_key=True)
    explored: Mapped[bool] = mapped_column(Boolean, default=False)
    bookmarked: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class DocumentStore(ABC):
    """Persistence contract used by the orchestrator"""

    @abstractmethod
    def document_exists(self, document_id: str) -> bool:
        pass  # pragma: no cover

    @abstractmethod
    def insert_document(self, document: StoredDocument) -> None:
        pass  # pragma: no cover

    @abstractmethod
    def ensure_user_status(self, user_id: int, document_id: str) -> bool:
        """Link a stored document to a user; True if a row was created"""
        pass  # pragma: no cover

    @abstractmethod
    def list_active_users(self) -> List[User]:
        """Active users in ascending id order"""
        pass  # pragma: no cover

    @abstractmethod
    def list_enabled_topics(self, user_id: int) -> List[Topic]:
        pass  # pragma: no cover


class SqlAlchemyDocumentStore(DocumentStore):
    """
    SQLAlchemy-backed document store.

    Handles:
    - Natural-key lookups and inserts of scored documents
    - Idempotent per-user status rows
    - User and topic listing (and seeding helpers for the CLI)
    """

    def __init__(self, db_url: str = "sqlite:///./data/sentinel.db", *, auto_create_schema: bool = True):
        self.db_url = db_url
        self._ensure_sqlite_dir(db_url)
        self.engine = create_engine(db_url, future=True)
        self._sessionmaker = sessionmaker(bind=self.engine, expire_on_commit=False)
        if auto_create_schema:
            self.create_schema()

    @staticmethod
    def _ensure_sqlite_dir(db_url: str) -> None:
        url = make_url(db_url)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)
        logger.debug("document_store_schema_ready", db_url=self.engine.url.render_as_string())

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self._sessionmaker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Orchestrator contract
    # ------------------------------------------------------------------

    def document_exists(self, document_id: str) -> bool:
        try:
            with self.session() as session:
                row = session.execute(
                    select(PaperModel.id).where(PaperModel.arxiv_id == document_id)
                ).first()
        except SQLAlchemyError as e:
            raise StorageError(f"Lookup failed for {document_id}: {e}") from e
        return row is not None

    def insert_document(self, document: StoredDocument) -> None:
        """Insert a scored document and link it to the collecting user.

        Raises:
            StorageError: On constraint violations or database failures
        """
        try:
            with self.session() as session:
                paper = PaperModel(
                    arxiv_id=document.document_id,
                    title=document.title,
                    authors_json=json.dumps(document.authors, ensure_ascii=False),
                    abstract=document.abstract,
                    categories_json=json.dumps(document.categories, ensure_ascii=False),
                    published_date=document.published_date,
                    pdf_url=document.pdf_url,
                    abs_url=document.abs_url,
                    summary=document.summary,
                    summary_model=document.summary_model,
                    summary_generated_at=document.summary_generated_at,
                    relevance_score=document.relevance_score,
                    content_hash=document.content_hash,
                    collected_for_user_id=document.collected_for_user_id,
                )
                session.add(paper)
                session.flush()
                session.add(
                    UserPaperStatusModel(
                        user_id=document.collected_for_user_id, paper_id=paper.id
                    )
                )
        except IntegrityError as e:
            raise StorageError(f"Insert rejected for {document.document_id}: {e.orig}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Insert failed for {document.document_id}: {e}") from e

        logger.debug(
            "document_stored",
            document_id=document.document_id,
            user_id=document.collected_for_user_id,
        )

    def ensure_user_status(self, user_id: int, document_id: str) -> bool:
        try:
            with self.session() as session:
                paper_id = session.execute(
                    select(PaperModel.id).where(PaperModel.arxiv_id == document_id)
                ).scalar_one_or_none()
                if paper_id is None:
                    raise StorageError(f"Unknown document: {document_id}")

                existing = session.get(UserPaperStatusModel, (user_id, paper_id))
                if existing is not None:
                    return False

                session.add(UserPaperStatusModel(user_id=user_id, paper_id=paper_id))
        except SQLAlchemyError as e:
            raise StorageError(f"Status link failed for {document_id}: {e}") from e

        logger.debug("user_status_linked", user_id=user_id, document_id=document_id)
        return True

    def list_active_users(self) -> List[User]:
        try:
            with self.session() as session:
                rows = session.execute(
                    select(UserModel).where(UserModel.is_active.is_(True)).order_by(UserModel.id)
                ).scalars()
                return [User(id=r.id, username=r.username, is_active=r.is_active) for r in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list users: {e}") from e

    def list_enabled_topics(self, user_id: int) -> List[Topic]:
        try:
            with self.session() as session:
                rows = session.execute(
                    select(TopicModel)
                    .where(TopicModel.user_id == user_id, TopicModel.enabled.is_(True))
                    .order_by(TopicModel.id)
                ).scalars()
                return [
                    Topic(id=r.id, user_id=r.user_id, name=r.name, query=r.query, enabled=r.enabled)
                    for r in rows
                ]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list topics for user {user_id}: {e}") from e

    # ------------------------------------------------------------------
    # Seeding and inspection
    # ------------------------------------------------------------------

    def add_user(self, username: str, is_active: bool = True) -> User:
        try:
            with self.session() as session:
                row = UserModel(username=username, is_active=is_active)
                session.add(row)
                session.flush()
                user = User(id=row.id, username=row.username, is_active=row.is_active)
        except IntegrityError as e:
            raise StorageError(f"User already exists: {username}") from e

        logger.info("user_added", user_id=user.id, username=username)
        return user

    def add_topic(self, user_id: int, name: str, query: str, enabled: bool = True) -> Topic:
        with self.session() as session:
            if session.get(UserModel, user_id) is None:
                raise StorageError(f"Unknown user: {user_id}")
            row = TopicModel(user_id=user_id, name=name, query=query, enabled=enabled)
            session.add(row)
            session.flush()
            topic = Topic(id=row.id, user_id=row.user_id, name=row.name, query=row.query, enabled=row.enabled)

        logger.info("topic_added", topic_id=topic.id, user_id=user_id, name=name)
        return topic

    def get_document(self, document_id: str) -> Optional[StoredDocument]:
        with self.session() as session:
            row = session.execute(
                select(PaperModel).where(PaperModel.arxiv_id == document_id)
            ).scalar_one_or_none()
            if row is None:
                return None
            return StoredDocument(
                document_id=row.arxiv_id,
                title=row.title,
                abstract=row.abstract,
                authors=json.loads(row.authors_json or "[]"),
                categories=json.loads(row.categories_json or "[]"),
                published_date=row.published_date,
                pdf_url=row.pdf_url,
                abs_url=row.abs_url,
                summary=row.summary,
                relevance_score=row.relevance_score,
                content_hash=row.content_hash,
                collected_for_user_id=row.collected_for_user_id,
                summary_model=row.summary_model,
                summary_generated_at=row.summary_generated_at or row.created_at,
            )

    def count_documents(self) -> int:
        with self.session() as session:
            return session.execute(select(func.count(PaperModel.id))).scalar_one()

    def list_user_document_ids(self, user_id: int) -> List[str]:
        """Natural keys linked to a user, in link order"""
        with self.session() as session:
            rows = session.execute(
                select(PaperModel.arxiv_id)
                .join(UserPaperStatusModel, UserPaperStatusModel.paper_id == PaperModel.id)
                .where(UserPaperStatusModel.user_id == user_id)
                .order_by(UserPaperStatusModel.created_at, PaperModel.id)
            ).scalars()
            return list(rows)
