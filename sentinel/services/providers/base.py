from abc import ABC, abstractmethod
from typing import List
from sentinel.models.document import Document


class DiscoveryProvider(ABC):
    """Abstract base class for document discovery providers

    Providers never raise from search(): transport errors and bad status codes
    degrade to an empty list so one failing topic does not abort the others.
    """

    @abstractmethod
    async def search(
        self,
        query: str,
        max_results: int = 100,
        start: int = 0,
        sort_by: str = "submittedDate",
        sort_order: str = "descending",
    ) -> List[Document]:
        """Search for documents matching a structured query

        Args:
            query: Provider-specific query expression
            max_results: Page size
            start: Offset of the first result
            sort_by: Sort field
            sort_order: "ascending" or "descending"

        Returns:
            Parsed documents (empty on any failure)
        """
        pass  # pragma: no cover - abstract method, always overridden

    @abstractmethod
    def validate_query(self, query: str) -> str:
        """Validate query against provider-specific syntax

        Raises:
            ValueError: If query contains invalid syntax or malicious patterns
        """
        pass  # pragma: no cover - abstract method, always overridden

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging and metrics"""
        pass  # pragma: no cover - abstract method, always overridden
