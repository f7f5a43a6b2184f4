"""HTTP endpoint receiving the GitHub App's webhook deliveries.

Run with uvicorn, e.g. through the ``review-bot`` command line entry point.
"""

import hashlib
import hmac
import json
import logging
from collections.abc import Awaitable, Callable

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response, status
from pydantic import ValidationError

from review_bot.config import BotSettings
from review_bot.dispatcher import EventDispatcher
from review_bot.events import parse_event
from review_bot.github_api import GitHubApp
from review_bot.lifecycle import CheckRunManager
from review_bot.remediation import RemediationExecutor

logger = logging.getLogger(__name__)

EVENT_HANDLER_PATH = "/event_handler"
SIGNATURE_PREFIX = "sha256="


def verify_signature(secret: str, body: bytes, signature_header: str | None) -> bool:
    """Check the ``X-Hub-Signature-256`` header of a delivery against its body."""
    if not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(SIGNATURE_PREFIX + expected, signature_header)


def build_dispatcher(settings: BotSettings) -> EventDispatcher:
    """Wire the dispatcher and its collaborators for the configured GitHub App."""
    github_app = GitHubApp(
        app_id=settings.app_id,
        private_key_pem=settings.private_key_pem,
        github_api_url=settings.github_api_url,
        timeout=settings.request_timeout,
    )
    return EventDispatcher(
        app_id=settings.app_id,
        check_runs=CheckRunManager(github_app, settings),
        remediation=RemediationExecutor(github_app, settings),
    )


def create_app(
    settings: BotSettings,
    dispatcher: EventDispatcher | None = None,
) -> FastAPI:
    """Create the FastAPI application serving the webhook endpoint."""
    if dispatcher is None:
        dispatcher = build_dispatcher(settings)
    secret = settings.webhook_secret.get_secret_value()
    app = FastAPI(title="review-bot", docs_url=None, redoc_url=None)

    @app.middleware("http")
    async def log_requests(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        logger.info("%s %s", request.method, request.url)
        return await call_next(request)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    async def read_body(request: Request) -> bytes:
        return await request.body()

    # a sync endpoint, every delivery is handled on its own worker thread
    def handle_webhook(
        body: bytes = Depends(read_body),
        x_github_event: str = Header(default=""),
        x_hub_signature_256: str | None = Header(default=None),
        x_github_delivery: str = Header(default=""),
    ) -> dict[str, str]:
        if not verify_signature(secret, body, x_hub_signature_256):
            logger.warning("Rejecting delivery %s with invalid signature", x_github_delivery)
            raise HTTPException(status.HTTP_401_UNAUTHORIZED, "invalid signature")
        try:
            payload = json.loads(body)
            event = parse_event(x_github_event, payload)
        except (ValueError, ValidationError) as exc:
            logger.warning("Rejecting undecodable delivery %s: %s", x_github_delivery, exc)
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "invalid payload") from exc

        logger.info("Got %s delivery %s", x_github_event, x_github_delivery)
        action = dispatcher.handle(event)
        if action is not None:
            logger.info("Delivery %s handled by %s", x_github_delivery, action.value)
        return {"status": "accepted"}

    for path in (EVENT_HANDLER_PATH, EVENT_HANDLER_PATH + "/"):
        app.add_api_route(
            path,
            handle_webhook,
            methods=["POST"],
            status_code=status.HTTP_202_ACCEPTED,
        )
    return app
