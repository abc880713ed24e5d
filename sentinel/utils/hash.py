"""Identifier and content hashing helpers.

Two kinds of keys are used for deduplication:
- the natural key: catalog identifier with any revision suffix stripped
- the content hash: SHA-256 of title + abstract, independent of identifier
"""

import hashlib
import re

# Trailing revision marker on arXiv identifiers: 2101.12345v3 -> 2101.12345
_REVISION_SUFFIX = re.compile(r"v\d+$")

# Prefixes an Atom <id> may carry in front of the bare identifier
_ABS_PREFIX = re.compile(r"^https?://(?:export\.)?arxiv\.org/abs/")


def normalize_document_id(raw_id: str) -> str:
    """Reduce a catalog identifier to its natural key.

    Accepts either the bare identifier or the full abstract URL used as the
    Atom entry id.

    Args:
        raw_id: Identifier as reported by the catalog.

    Returns:
        Identifier without URL prefix or revision suffix, or "" when empty.

    Example:
        >>> normalize_document_id("http://arxiv.org/abs/2101.12345v2")
        '2101.12345'
    """
    if not raw_id:
        return ""

    doc_id = _ABS_PREFIX.sub("", raw_id.strip())
    return _REVISION_SUFFIX.sub("", doc_id)


def content_hash(title: str, abstract: str) -> str:
    """Stable hex digest of title + abstract for cross-run duplicate checks.

    Args:
        title: Document title.
        abstract: Document abstract.

    Returns:
        Lowercase hex SHA-256 digest.
    """
    return hashlib.sha256(f"{title}{abstract}".encode("utf-8")).hexdigest()
