"""
GitHub webhook endpoint.

Deliveries are processed inside the request: the response is sent only after
the store reflects the event, so GitHub's redelivery covers any failure.
"""

import hashlib
import hmac
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from correlator.config import settings
from correlator.dependencies import get_pull_request_handler, get_push_handler
from correlator.models import PullRequestPayload, PushPayload
from correlator.models.api_response import WebhookResponse, WebhookStatus
from correlator.services.pull_request_handler import PullRequestHandler
from correlator.services.push_handler import PushHandler
from correlator.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

SIGNATURE_PREFIX = "sha256="


def verify_webhook_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Verify GitHub's ``X-Hub-Signature-256`` header.

    Args:
        payload: Raw request body
        signature: Header value, ``sha256=<hex>``
        secret: Shared webhook secret

    Returns:
        True if the signature matches the body
    """
    if not signature or not signature.startswith(SIGNATURE_PREFIX):
        return False

    expected = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()

    # Constant-time comparison
    return hmac.compare_digest(signature[len(SIGNATURE_PREFIX):], expected)


def parse_webhook_body(body: bytes, content_type: Optional[str]) -> Dict[str, Any]:
    """
    Decode a delivery body.

    GitHub sends either JSON or a urlencoded form whose ``payload`` field
    holds the JSON document.

    Raises:
        ValueError: If a form body has no ``payload`` field
    """
    if content_type and content_type.startswith("application/x-www-form-urlencoded"):
        form = parse_qs(body.decode("utf-8"))
        if "payload" not in form:
            raise ValueError("Form-encoded webhook without a payload field")
        return json.loads(form["payload"][0])

    return json.loads(body)


@router.get("/github", response_model=WebhookStatus)
async def webhook_status() -> WebhookStatus:
    """Liveness probe used when configuring the webhook on GitHub."""
    return WebhookStatus(
        status="GitHub webhook endpoint is ready",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.post("/github", response_model=WebhookResponse)
async def handle_github_webhook(
    request: Request,
    x_github_event: Optional[str] = Header(None, alias="X-GitHub-Event"),
    x_hub_signature: Optional[str] = Header(None, alias="X-Hub-Signature-256"),
    push_handler: PushHandler = Depends(get_push_handler),
    pull_request_handler: PullRequestHandler = Depends(get_pull_request_handler),
):
    """
    Receive a GitHub delivery and correlate it.

    ``push`` and ``pull_request`` events are processed; any other event type
    is acknowledged and ignored. A delivery for a repository no project
    claims is acknowledged with no effect.

    Raises:
        HTTPException: 401 if a secret is configured and the signature does not match
    """
    body = await request.body()

    if settings.webhook_secret and not verify_webhook_signature(
        body, x_hub_signature, settings.webhook_secret
    ):
        logger.warning("Invalid webhook signature received", extra={"event_type": x_github_event})
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        payload = parse_webhook_body(body, request.headers.get("content-type"))
        repository = (payload.get("repository") or {}).get("full_name")
        log_webhook_event(logger, x_github_event or "unknown", repository, payload.get("action"))

        if x_github_event == "push":
            await push_handler.handle(PushPayload.model_validate(payload))
        elif x_github_event == "pull_request":
            await pull_request_handler.handle(PullRequestPayload.model_validate(payload))
        else:
            logger.info(f"Ignoring event type: {x_github_event}")

        return WebhookResponse(success=True)

    except Exception as e:
        logger.error(
            f"Error processing webhook: {e}",
            exc_info=True,
            extra={"event_type": x_github_event},
        )
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed"})
