"""
Base storage interface for capture records
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
import logging

from ..models.record import CaptureRecord

logger = logging.getLogger(__name__)


class BaseStorage(ABC):
    """
    Base class for storage backends

    Records are keyed by URL: saving a record for a URL that is already
    stored updates the existing record instead of adding another.
    """

    @abstractmethod
    async def save_record(self, record: CaptureRecord) -> str:
        """
        Save a capture record

        Args:
            record: Record to save

        Returns:
            ID of the stored record (the existing ID when the URL was already stored)
        """
        pass

    @abstractmethod
    async def get_record(self, url: str) -> Optional[CaptureRecord]:
        """
        Retrieve the record for a URL

        Returns:
            Record or None if not found
        """
        pass

    @abstractmethod
    async def list_records(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        List records with metadata, newest first

        Args:
            limit: Maximum number of records to return
        """
        pass

    @abstractmethod
    async def delete_record(self, url: str) -> bool:
        """
        Delete the record for a URL

        Returns:
            True if a record was deleted
        """
        pass

    @abstractmethod
    async def record_exists(self, url: str) -> bool:
        pass

    async def search_records(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Simple text search in record titles and summaries
        Default implementation - subclasses can override for better search
        """
        matching = []
        query_lower = query.lower()

        for meta in await self.list_records():
            title_match = query_lower in (meta.get('title') or '').lower()
            summary_match = query_lower in (meta.get('summary') or '').lower()

            if title_match or summary_match:
                matching.append(meta)

            if len(matching) >= limit:
                break

        return matching

    def get_storage_stats(self) -> Dict[str, Any]:
        return {
            'backend': self.__class__.__name__,
            'features': ['basic_storage']
        }


class StorageError(Exception):
    """Exception raised by storage operations"""

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message)
