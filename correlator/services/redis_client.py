"""
Redis client wrapper for the analysis job queue and notification channel.

This service provides Redis operations for:
- Analysis job queue using a list (RPUSH / BLPOP, FIFO)
- Project notification fan-out using pub/sub

Includes connection pooling and retry logic for resilience.
"""

import json
import asyncio
from typing import Any, Dict, Optional
from contextlib import asynccontextmanager

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError, ConnectionError, TimeoutError

from correlator.models import AnalysisJob
from correlator.utils.logging import get_logger

logger = get_logger(__name__)


class RedisConnectionError(Exception):
    """Raised when Redis connection fails after retries."""
    pass


class RedisClient:
    """
    Redis client wrapper with connection pooling and retry logic.

    Provides methods for:
    - Analysis job queue operations (list push/pop)
    - Notification publishing
    """

    JOB_QUEUE_KEY = "job_queue:analysis"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        connection_timeout: int = 5
    ):
        """
        Initialize Redis client.

        Args:
            redis_url: Redis connection URL. If None, will load from settings.
            max_retries: Maximum number of retry attempts for transient errors
            retry_delay: Base delay between retries (exponential backoff)
            connection_timeout: Connection timeout in seconds
        """
        self._redis_url = redis_url
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._connection_timeout = connection_timeout

    async def initialize(self) -> None:
        """
        Initialize Redis connection pool.

        Should be called during application startup.

        Raises:
            RedisConnectionError: If connection fails
        """
        try:
            if not self._redis_url:
                from correlator.config import settings
                self._redis_url = settings.redis_url

            self._pool = ConnectionPool.from_url(
                self._redis_url,
                max_connections=10,
                decode_responses=True,
                socket_timeout=self._connection_timeout,
                socket_connect_timeout=self._connection_timeout
            )

            self._client = redis.Redis(connection_pool=self._pool)

            await self._client.ping()

            logger.info("Redis connection pool initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize Redis connection pool: {e}")
            raise RedisConnectionError(f"Failed to connect to Redis: {e}")

    async def close(self) -> None:
        """
        Close Redis connection pool.

        Should be called during application shutdown.
        """
        if self._client:
            await self._client.aclose()

        if self._pool:
            await self._pool.disconnect()

        logger.info("Redis connection pool closed")

    @asynccontextmanager
    async def _get_client(self):
        if not self._client:
            raise RuntimeError("Redis client not initialized. Call initialize() first.")

        yield self._client

    async def _retry_operation(self, operation, *args, **kwargs):
        """
        Execute Redis operation with retry logic.

        Transient errors (connection, timeout) are retried with exponential
        backoff; other Redis errors propagate immediately.

        Raises:
            RedisConnectionError: If operation fails after all retries
        """
        last_error = None

        for attempt in range(self._max_retries):
            try:
                return await operation(*args, **kwargs)

            except (ConnectionError, TimeoutError) as e:
                last_error = e
                if attempt < self._max_retries - 1:
                    delay = self._retry_delay * (2 ** attempt)
                    logger.warning(
                        f"Redis operation failed (attempt {attempt + 1}/{self._max_retries}), "
                        f"retrying in {delay}s: {e}"
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(f"Redis operation failed after {self._max_retries} attempts: {e}")

            except RedisError as e:
                logger.error(f"Redis operation failed with non-transient error: {e}")
                raise

        raise RedisConnectionError(f"Redis operation failed after {self._max_retries} retries: {last_error}")

    # ========== Job Queue Operations (List) ==========

    async def enqueue_analysis(self, job: AnalysisJob) -> None:
        """
        Enqueue an analysis job.

        Raises:
            RedisConnectionError: If operation fails after retries
        """
        async def _enqueue():
            async with self._get_client() as client:
                await client.rpush(self.JOB_QUEUE_KEY, job.model_dump_json())
                logger.info(
                    f"Enqueued {job.kind.value} analysis job for {job.target_id}",
                    extra={"job_id": job.job_id},
                )

        await self._retry_operation(_enqueue)

    async def dequeue_analysis(self, timeout: int = 0) -> Optional[AnalysisJob]:
        """
        Dequeue an analysis job.

        Args:
            timeout: Blocking timeout in seconds (0 for non-blocking)

        Returns:
            AnalysisJob if available, None if queue is empty
        """
        async def _dequeue():
            async with self._get_client() as client:
                if timeout > 0:
                    result = await client.blpop(self.JOB_QUEUE_KEY, timeout=timeout)
                    if not result:
                        return None
                    _, job_json = result
                else:
                    job_json = await client.lpop(self.JOB_QUEUE_KEY)

                if not job_json:
                    return None

                job = AnalysisJob.model_validate_json(job_json)
                logger.info(
                    f"Dequeued {job.kind.value} analysis job for {job.target_id}",
                    extra={"job_id": job.job_id},
                )
                return job

        return await self._retry_operation(_dequeue)

    async def get_queue_length(self) -> int:
        """Number of jobs waiting in the queue."""
        async def _get_length():
            async with self._get_client() as client:
                return await client.llen(self.JOB_QUEUE_KEY)

        return await self._retry_operation(_get_length)

    # ========== Notifications (Pub/Sub) ==========

    async def publish(self, channel: str, message: Dict[str, Any]) -> int:
        """
        Publish a JSON message on a channel.

        Returns:
            Number of subscribers that received the message
        """
        async def _publish():
            async with self._get_client() as client:
                return await client.publish(channel, json.dumps(message, default=str))

        return await self._retry_operation(_publish)

    # ========== Utility Methods ==========

    async def ping(self) -> bool:
        """
        Test Redis connection.

        Raises:
            RedisConnectionError: If ping fails
        """
        async def _ping():
            async with self._get_client() as client:
                return await client.ping()

        return await self._retry_operation(_ping)
