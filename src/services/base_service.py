"""
Base service layer for keyed hash records in the Redis store
"""

import logging
from typing import Dict, Any, List, Optional
from dataclasses import dataclass

from database.connection import StoreClient

logger = logging.getLogger(__name__)

# Error types carried by ServiceResult
VALIDATION_ERROR = "VALIDATION_ERROR"
CONFLICT = "CONFLICT"
RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
STORE_ERROR = "STORE_ERROR"


@dataclass
class ServiceResult:
    """Result from service operation"""
    success: bool
    data: Optional[List[Dict[str, Any]]] = None
    count: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, data: Optional[List[Dict[str, Any]]] = None) -> "ServiceResult":
        data = data or []
        return cls(success=True, data=data, count=len(data))

    @classmethod
    def fail(cls, error: str, error_type: str) -> "ServiceResult":
        return cls(success=False, error=error, error_type=error_type)


class BaseService:
    """Base service for one record namespace in the store"""

    def __init__(self, store: StoreClient, resource_name: str, key_prefix: str):
        self.store = store
        self.resource_name = resource_name
        self.key_prefix = key_prefix
        logger.debug(f"BaseService initialized for resource: {resource_name}")

    def key_for(self, identifier: str) -> str:
        """Store key for a record identifier"""
        return f"{self.key_prefix}{identifier}"

    def identifier_for(self, key: str) -> str:
        """Record identifier for a store key"""
        return key[len(self.key_prefix):] if key.startswith(self.key_prefix) else key

    @property
    def key_pattern(self) -> str:
        return f"{self.key_prefix}*"

    async def list_records(self) -> List[Dict[str, Any]]:
        """
        Fetch every record in the namespace

        Returns:
            List of (identifier, fields) dictionaries; keys removed between
            enumeration and fetch are skipped
        """
        records = []
        for key in await self.store.list_keys(self.key_pattern):
            fields = await self.store.get_all(key)
            if not fields:
                continue
            records.append({"id": self.identifier_for(key), "fields": fields})
        return records
