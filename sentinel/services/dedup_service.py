"""
Merge and deduplicate per-topic discovery results.

Each topic is queried separately, so the same document can come back several
times for one user (and, across revisions, under several raw identifiers).
Documents are keyed by natural key; the first occurrence wins.
"""

from datetime import datetime
from typing import Iterable, List
import structlog

from sentinel.models.document import Document
from sentinel.utils.hash import normalize_document_id

logger = structlog.get_logger()

# Documents without a publication date sort last
_OLDEST = datetime.min


def merge_documents(result_lists: Iterable[List[Document]]) -> List[Document]:
    """
    Merge topic results into one deduplicated, most-recent-first list.

    Args:
        result_lists: One list of documents per topic query

    Returns:
        Unique documents ordered by publication date descending, then by
        natural key so the order is stable across invocations
    """
    seen: dict[str, Document] = {}
    total = 0

    for documents in result_lists:
        for document in documents:
            total += 1
            key = normalize_document_id(document.document_id)
            if key in seen:
                continue
            if key != document.document_id:
                document = document.model_copy(update={"document_id": key})
            seen[key] = document

    merged = sorted(
        seen.values(),
        key=lambda d: (d.published_date or _OLDEST, d.document_id),
        reverse=True,
    )

    logger.debug(
        "documents_merged",
        total=total,
        unique=len(merged),
        duplicates=total - len(merged),
    )
    return merged
