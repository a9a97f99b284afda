"""
Unit tests for Redis client wrapper.

Tests Redis operations using fakeredis for isolated testing.
"""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError

from correlator.models import AnalysisJob, AnalysisKind
from correlator.services.redis_client import RedisClient, RedisConnectionError


async def test_enqueue_dequeue_is_fifo(redis_client):
    first = AnalysisJob(kind=AnalysisKind.COMMIT, target_id="c1")
    second = AnalysisJob(kind=AnalysisKind.TRANSCRIPT, target_id="t1", user_id="u1")

    await redis_client.enqueue_analysis(first)
    await redis_client.enqueue_analysis(second)

    assert await redis_client.get_queue_length() == 2
    assert await redis_client.dequeue_analysis() == first
    assert await redis_client.dequeue_analysis(timeout=1) == second
    assert await redis_client.get_queue_length() == 0


async def test_dequeue_empty_queue(redis_client):
    assert await redis_client.dequeue_analysis() is None


async def test_job_payload_is_json(redis_client):
    job = AnalysisJob(kind=AnalysisKind.PULL_REQUEST, target_id="pr1")

    await redis_client.enqueue_analysis(job)

    raw = await redis_client._client.lpop(RedisClient.JOB_QUEUE_KEY)
    assert json.loads(raw) == {
        "job_id": job.job_id,
        "kind": "pull_request",
        "target_id": "pr1",
        "user_id": None,
    }


async def test_publish(redis_client):
    pubsub = redis_client._client.pubsub()
    await pubsub.subscribe("notifications:p1")
    await pubsub.get_message(timeout=1)

    receivers = await redis_client.publish("notifications:p1", {"type": "commit"})

    message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1)
    assert receivers == 1
    assert json.loads(message["data"]) == {"type": "commit"}
    await pubsub.aclose()


async def test_ping(redis_client):
    assert await redis_client.ping() is True


async def test_transient_errors_are_retried():
    client = RedisClient(redis_url="redis://localhost:6379/0", max_retries=3, retry_delay=0)
    client._client = AsyncMock()
    client._client.llen.side_effect = [ConnectionError("reset"), 4]

    assert await client.get_queue_length() == 4
    assert client._client.llen.await_count == 2


async def test_retries_exhausted():
    client = RedisClient(redis_url="redis://localhost:6379/0", max_retries=2, retry_delay=0)
    client._client = AsyncMock()
    client._client.llen.side_effect = ConnectionError("down")

    with pytest.raises(RedisConnectionError):
        await client.get_queue_length()


async def test_uninitialized_client():
    client = RedisClient(redis_url="redis://localhost:6379/0")

    with pytest.raises(RuntimeError):
        await client.ping()
