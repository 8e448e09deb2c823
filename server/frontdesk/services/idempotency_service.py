"""Idempotency service for handling duplicate requests."""

import asyncio
import hashlib
import json
import logging
import time
from collections import OrderedDict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Optional

from pydantic import BaseModel

from ..core.exceptions import ConflictError

logger = logging.getLogger(__name__)


class IdempotencyMismatchError(ConflictError):
    """Exception when idempotency key is reused with different request body."""

    def __init__(self, idempotency_key: str, method: str):
        super().__init__(
            detail=f"Idempotency key '{idempotency_key}' was already used for method '{method}' with different request body",
            code="IDEMPOTENCY_KEY_MISMATCH",
            slug="idempotency-key-mismatch",
            extensions={"method": method},
        )


class IdempotencyRecord(BaseModel):
    """Cached outcome of one (key, method) pair."""

    idempotency_key: str
    method: str
    request_body_hash: str
    response_status_code: int
    response_body: str
    response_headers: Optional[dict[str, str]] = None
    created_at: float
    expires_at: float


class IdempotencyService:
    """
    Service for handling idempotent operations.

    Records live in process memory, keyed by (idempotency key, method), and
    expire after ``ttl_seconds``. Once ``max_records`` is reached the oldest
    record is evicted.
    """

    def __init__(self, ttl_seconds: int = 3600, max_records: int = 10000):
        self.ttl_seconds = ttl_seconds
        self.max_records = max_records
        self._records: OrderedDict[tuple[str, str], IdempotencyRecord] = OrderedDict()
        # (key, method) -> (lock, requests holding or waiting on it)
        self._key_locks: dict[tuple[str, str], tuple[asyncio.Lock, int]] = {}

    def __len__(self) -> int:
        return len(self._records)

    def _compute_request_hash(self, request_body: dict[str, Any]) -> str:
        """Compute SHA-256 hash of normalized request body."""
        normalized = json.dumps(request_body, sort_keys=True, separators=(',', ':'), default=str)
        return hashlib.sha256(normalized.encode('utf-8')).hexdigest()

    @asynccontextmanager
    async def key_lock(self, idempotency_key: str, method: str) -> AsyncIterator[None]:
        """
        Serialise concurrent requests that share a key and method.

        The lock is dropped as soon as no request holds or waits on it,
        whether the operation succeeded, was rejected or crashed.
        """
        key = (idempotency_key, method)
        lock, users = self._key_locks.get(key) or (asyncio.Lock(), 0)
        self._key_locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            _, users = self._key_locks[key]
            if users == 1:
                del self._key_locks[key]
            else:
                self._key_locks[key] = (lock, users - 1)

    def pending_keys(self) -> int:
        """Number of (key, method) pairs with a request in flight."""
        return len(self._key_locks)

    async def check_idempotency(
        self,
        idempotency_key: str,
        method: str,
        request_body: dict[str, Any],
    ) -> tuple[int, dict[str, Any], dict[str, str] | None] | None:
        """
        Check if request is idempotent and return cached response if available.

        Args:
            idempotency_key: Unique idempotency key
            method: Operation name
            request_body: Request body to hash and compare

        Returns:
            Tuple of (status_code, response_body, headers) if cached response exists,
            None if this is a new request

        Raises:
            IdempotencyMismatchError: If key exists with different request body
        """
        request_hash = self._compute_request_hash(request_body)
        existing_record = self._records.get((idempotency_key, method))

        if existing_record is not None and existing_record.expires_at <= time.time():
            del self._records[(idempotency_key, method)]
            existing_record = None

        if existing_record is None:
            logger.info(
                "No existing idempotency record found",
                extra={
                    "idempotency_key": idempotency_key,
                    "method": method,
                    "request_hash": request_hash[:8]
                }
            )
            return None

        if existing_record.request_body_hash != request_hash:
            logger.warning(
                "Idempotency key mismatch",
                extra={
                    "idempotency_key": idempotency_key,
                    "method": method,
                    "existing_hash": existing_record.request_body_hash[:8],
                    "new_hash": request_hash[:8]
                }
            )
            raise IdempotencyMismatchError(idempotency_key, method)

        logger.info(
            "Returning cached idempotent response",
            extra={
                "idempotency_key": idempotency_key,
                "method": method,
                "status_code": existing_record.response_status_code,
            }
        )

        return (
            existing_record.response_status_code,
            json.loads(existing_record.response_body),
            existing_record.response_headers,
        )

    async def store_response(
        self,
        idempotency_key: str,
        method: str,
        request_body: dict[str, Any],
        status_code: int,
        response_body: dict[str, Any],
        response_headers: dict[str, str] | None = None,
    ) -> None:
        """
        Store response for idempotent operation.

        Args:
            idempotency_key: Unique idempotency key
            method: Operation name
            request_body: Original request body
            status_code: Response status code
            response_body: Response body to cache
            response_headers: Response headers to cache
        """
        now = time.time()
        record = IdempotencyRecord(
            idempotency_key=idempotency_key,
            method=method,
            request_body_hash=self._compute_request_hash(request_body),
            response_status_code=status_code,
            response_body=json.dumps(response_body, sort_keys=True, separators=(',', ':')),
            response_headers=response_headers,
            created_at=now,
            expires_at=now + self.ttl_seconds,
        )

        key = (idempotency_key, method)
        if key in self._records:
            logger.info(
                "Idempotency record already exists",
                extra={"idempotency_key": idempotency_key, "method": method}
            )
            return

        self.cleanup_expired_records(now)
        while len(self._records) >= self.max_records:
            self._records.popitem(last=False)

        self._records[key] = record
        logger.info(
            "Stored idempotency record",
            extra={
                "idempotency_key": idempotency_key,
                "method": method,
                "status_code": status_code,
            }
        )

    def cleanup_expired_records(self, now: Optional[float] = None) -> int:
        """
        Drop expired idempotency records.

        Returns:
            Number of records deleted
        """
        now = time.time() if now is None else now
        expired = [key for key, record in self._records.items() if record.expires_at <= now]
        for key in expired:
            del self._records[key]

        if expired:
            logger.info(
                "Cleaned up expired idempotency records",
                extra={"deleted_count": len(expired)}
            )

        return len(expired)
