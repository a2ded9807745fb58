"""Lightweight aiohttp server -- the cronwise HTTP API.

Cron validation and occurrence search run locally. Translation routes go
through the configured LLM provider and are rate limited per client.
No framework magic, no middleware stack.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from aiohttp import web

from engine.translator import TranslationError
from scheduler.cron import (
    TEMPLATES,
    next_occurrences,
    split_expression,
    validate_cron_expression,
)

if TYPE_CHECKING:
    from core.config import AppConfig
    from core.data.store import HistoryStore
    from core.ratelimit import RateLimitDecision, SlidingWindowRateLimiter
    from engine.translator import CronTranslator

logger = logging.getLogger(__name__)

# Upper bound for ?count= / "count" so one request cannot ask for a huge list.
MAX_OCCURRENCE_COUNT = 50


def create_app(
    config: AppConfig,
    store: HistoryStore,
    translator: CronTranslator | None = None,
    limiter: SlidingWindowRateLimiter | None = None,
) -> web.Application:
    """Create and configure the aiohttp application.

    `translator` is None when no AI provider is configured; the translation
    routes then answer 503. `limiter` is None when rate limiting is off.
    """
    app = web.Application()

    # Store references for route handlers
    app["config"] = config
    app["store"] = store
    app["translator"] = translator
    app["limiter"] = limiter

    # Register routes
    app.router.add_get("/health", handle_health)
    app.router.add_get("/api/templates", handle_get_templates)
    app.router.add_post("/api/validate", handle_validate)
    app.router.add_post("/api/next-executions", handle_next_executions)
    app.router.add_post("/api/nl-to-cron", handle_nl_to_cron)
    app.router.add_post("/api/cron-to-nl", handle_cron_to_nl)
    app.router.add_get("/api/history", handle_get_history)
    app.router.add_delete("/api/history", handle_clear_history)

    return app


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _read_json(request: web.Request) -> dict | None:
    try:
        body = await request.json()
    except ValueError:  # JSONDecodeError, or a body that is not UTF-8
        return None
    return body if isinstance(body, dict) else None


def _client_id(request: web.Request) -> str:
    """Client identity for rate limiting.

    The first X-Forwarded-For entry counts only when `rate_limit.trust_forwarded`
    is set, i.e. behind a proxy that overwrites the header.
    """
    config: AppConfig = request.app["config"]
    forwarded = request.headers.get("X-Forwarded-For", "") if config.rate_limit.trust_forwarded else ""
    if forwarded.strip():
        return forwarded.split(",")[0].strip()
    return request.remote or "127.0.0.1"


def _check_rate_limit(request: web.Request) -> tuple[RateLimitDecision | None, web.Response | None]:
    """Count the request. Returns (decision, 429 response if over the limit)."""
    limiter: SlidingWindowRateLimiter | None = request.app["limiter"]
    if limiter is None:
        return None, None

    decision = limiter.limit(_client_id(request))
    if decision.success:
        return decision, None

    return decision, web.json_response(
        {
            "error": "Rate limit exceeded. Please try again later.",
            "limit": decision.limit,
            "reset": decision.reset,
            "remaining": 0,
        },
        status=429,
        headers=decision.headers(),
    )


def _limit_headers(decision: RateLimitDecision | None) -> dict[str, str] | None:
    return decision.headers() if decision else None


def _occurrences(config: AppConfig, expression: str, count: int | None = None) -> list[str]:
    return next_occurrences(
        expression,
        reference=datetime.now(),
        count=count if count is not None else config.cron.occurrence_count,
        search_limit=config.cron.search_limit,
    )


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------

async def handle_health(request: web.Request) -> web.Response:
    """GET /health -- health check."""
    translator: CronTranslator | None = request.app["translator"]
    return web.json_response({
        "status": "ok",
        "ai_provider": translator.provider_name if translator else None,
        "rate_limited": request.app["limiter"] is not None,
    })


async def handle_get_templates(request: web.Request) -> web.Response:
    """GET /api/templates -- common schedules."""
    return web.json_response(TEMPLATES)


async def handle_validate(request: web.Request) -> web.Response:
    """POST /api/validate -- validate and preview an expression.

    Body: {"cronExpression": "0 9 * * 1-5"}
    """
    body = await _read_json(request)
    if body is None:
        return web.json_response({"error": "Invalid JSON"}, status=400)

    expression = str(body.get("cronExpression") or "")
    result = validate_cron_expression(expression)

    payload = result.model_dump(by_alias=True)
    payload["nextExecutions"] = (
        _occurrences(request.app["config"], expression) if result.is_valid else []
    )
    return web.json_response(payload)


async def handle_next_executions(request: web.Request) -> web.Response:
    """POST /api/next-executions -- upcoming run times.

    Body: {"cronExpression": "*/15 * * * *", "count": 5}
    """
    body = await _read_json(request)
    if body is None:
        return web.json_response({"error": "Invalid JSON"}, status=400)

    expression = body.get("cronExpression")
    if not expression:
        return web.json_response({"error": "CRON expression is required"}, status=400)

    count = body.get("count")
    if count is not None:
        if not isinstance(count, int) or isinstance(count, bool) or not 0 <= count <= MAX_OCCURRENCE_COUNT:
            return web.json_response(
                {"error": f"count must be an integer between 0 and {MAX_OCCURRENCE_COUNT}"},
                status=400,
            )

    return web.json_response({
        "nextExecutions": _occurrences(request.app["config"], str(expression), count),
    })


async def handle_nl_to_cron(request: web.Request) -> web.Response:
    """POST /api/nl-to-cron -- generate an expression from a description.

    Body: {"naturalLanguage": "every weekday at 9am"}
    """
    decision, rejected = _check_rate_limit(request)
    if rejected is not None:
        return rejected

    translator: CronTranslator | None = request.app["translator"]
    if translator is None:
        return web.json_response({"error": "No AI provider configured"}, status=503)

    body = await _read_json(request)
    if body is None:
        return web.json_response({"error": "Invalid JSON"}, status=400)

    natural_language = str(body.get("naturalLanguage") or "").strip()
    if not natural_language:
        return web.json_response({"error": "Natural language input is required"}, status=400)

    try:
        cron_expression = await translator.to_cron(natural_language)
    except TranslationError:
        logger.exception("Error generating CRON expression")
        return web.json_response(
            {"error": "Failed to generate CRON expression. Please try rephrasing your request."},
            status=500,
            headers=_limit_headers(decision),
        )

    store: HistoryStore = request.app["store"]
    store.add(natural_language, cron_expression, "nl-to-cron")

    return web.json_response(
        {"cronExpression": cron_expression},
        headers=_limit_headers(decision),
    )


async def handle_cron_to_nl(request: web.Request) -> web.Response:
    """POST /api/cron-to-nl -- describe an expression in plain English.

    Body: {"cronExpression": "0 9 * * 1-5"}
    """
    decision, rejected = _check_rate_limit(request)
    if rejected is not None:
        return rejected

    translator: CronTranslator | None = request.app["translator"]
    if translator is None:
        return web.json_response({"error": "No AI provider configured"}, status=503)

    body = await _read_json(request)
    if body is None:
        return web.json_response({"error": "Invalid JSON"}, status=400)

    cron_expression = str(body.get("cronExpression") or "").strip()
    if not cron_expression:
        return web.json_response({"error": "CRON expression is required"}, status=400)

    if len(split_expression(cron_expression)) != 5:
        return web.json_response(
            {"error": "Invalid CRON expression. Must have 5 parts."},
            status=400,
        )

    try:
        description = await translator.to_natural_language(cron_expression)
    except TranslationError:
        logger.exception("Error interpreting CRON expression")
        return web.json_response(
            {"error": "Failed to interpret CRON expression. Please check the format."},
            status=500,
            headers=_limit_headers(decision),
        )

    store: HistoryStore = request.app["store"]
    store.add(cron_expression, description, "cron-to-nl")

    return web.json_response(
        {"description": description},
        headers=_limit_headers(decision),
    )


async def handle_get_history(request: web.Request) -> web.Response:
    """GET /api/history -- recent conversions, newest first."""
    store: HistoryStore = request.app["store"]

    try:
        limit = int(request.query["limit"]) if "limit" in request.query else None
    except ValueError:
        return web.json_response({"error": "limit must be an integer"}, status=400)

    return web.json_response([c.model_dump(mode="json") for c in store.recent(limit)])


async def handle_clear_history(request: web.Request) -> web.Response:
    """DELETE /api/history -- remove all stored conversions."""
    store: HistoryStore = request.app["store"]
    removed = store.clear()
    logger.info("Cleared %d history item(s)", removed)
    return web.json_response({"deleted": removed})
