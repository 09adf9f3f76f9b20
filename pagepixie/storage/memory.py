"""
In-memory storage backend
"""

from typing import List, Dict, Any, Optional
from datetime import datetime
import logging
import copy

from .base import BaseStorage, StorageError
from ..models.record import CaptureRecord

logger = logging.getLogger(__name__)


class InMemoryStorage(BaseStorage):
    """In-memory, URL-keyed storage for testing and development"""

    def __init__(self):
        self._records: Dict[str, CaptureRecord] = {}
        self._created_at = datetime.now()
        logger.info("Initialized in-memory storage")

    async def save_record(self, record: CaptureRecord) -> str:
        """Save record to memory, updating any existing record for the same URL"""
        try:
            stored = copy.deepcopy(record)
            existing = self._records.get(record.url)

            if existing is not None:
                stored.id = existing.id
                stored.created_at = existing.created_at
                stored.updated_at = datetime.now()
                logger.info(f"Updated record for {record.url}")
            else:
                logger.info(f"Saved record for {record.url}")

            self._records[record.url] = stored
            return stored.id

        except Exception as e:
            logger.error(f"Failed to save record for {record.url}: {e}")
            raise StorageError(f"Failed to save record: {e}", record.url) from e

    async def get_record(self, url: str) -> Optional[CaptureRecord]:
        record = self._records.get(url)
        # Copies keep callers from mutating stored state
        return copy.deepcopy(record) if record else None

    async def list_records(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        records = sorted(self._records.values(), key=lambda r: r.created_at, reverse=True)
        if limit:
            records = records[:limit]
        return [
            {
                'id': record.id,
                'url': record.url,
                'title': record.title,
                'content_type': record.content_type,
                'summary': record.summary,
                'created_at': record.created_at.isoformat(),
                'updated_at': (record.updated_at or record.created_at).isoformat(),
            }
            for record in records
        ]

    async def delete_record(self, url: str) -> bool:
        if url in self._records:
            del self._records[url]
            logger.info(f"Deleted record for {url}")
            return True

        logger.warning(f"Record for {url} not found in memory")
        return False

    async def record_exists(self, url: str) -> bool:
        return url in self._records

    def get_storage_stats(self) -> Dict[str, Any]:
        return {
            'backend': 'InMemoryStorage',
            'total_records': len(self._records),
            'created_at': self._created_at.isoformat(),
            'features': ['in_memory', 'url_keyed', 'search', 'testing']
        }

    def clear_all(self):
        """Clear all records (useful for testing)"""
        self._records.clear()
        logger.info("Cleared all records from memory")

    def get_record_count(self) -> int:
        return len(self._records)
