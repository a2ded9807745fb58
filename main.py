"""cronwise server entrypoint (`cronwise-server`).

    cronwise-server [--config PATH] [--env PATH]

Loads the config, builds the history store, LLM providers and rate limiter,
and serves the HTTP API until interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from aiohttp import web

from core.config import AppConfig, load_config
from core.data.store import HistoryStore
from core.protocols import LLMProvider
from core.ratelimit import SlidingWindowRateLimiter
from engine.translator import CronTranslator
from plugins.ai_providers import load_providers
from server import create_app

logger = logging.getLogger("cronwise")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str) -> None:
    """Configure root logging once; HTTP client chatter stays at WARNING."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for noisy in ("aiohttp.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="cronwise-server", description="cronwise HTTP API")
    parser.add_argument("--config", "-c", default=None, help="config.yaml (default: <home>/config.yaml)")
    parser.add_argument("--env", default=None, help=".env file (default: <home>/.env)")
    return parser.parse_args(argv)


def select_translator(config: AppConfig, providers: dict[str, LLMProvider]) -> CronTranslator | None:
    """Use the default provider, or any loaded one if the default is missing."""
    if not providers:
        logger.warning("No AI provider configured; translation routes are disabled")
        return None

    default = config.ai.default_provider
    if default in providers:
        return CronTranslator(llm=providers[default])

    fallback = next(iter(providers))
    logger.warning(
        "Default AI provider %s is not loaded, using %s instead", default, fallback,
    )
    return CronTranslator(llm=providers[fallback])


def build_limiter(config: AppConfig) -> SlidingWindowRateLimiter | None:
    if not config.rate_limit.enabled:
        logger.info("Rate limiting disabled")
        return None
    return SlidingWindowRateLimiter(
        requests=config.rate_limit.requests,
        window=config.rate_limit.window_seconds,
    )


def build_app(config: AppConfig) -> tuple[web.Application, HistoryStore, dict[str, LLMProvider]]:
    """Wire the components. The caller owns the returned store and providers."""
    store = HistoryStore(config.home_path / "history.sqlite", max_items=config.history.max_items)
    providers = load_providers(config.ai.providers)
    app = create_app(
        config=config,
        store=store,
        translator=select_translator(config, providers),
        limiter=build_limiter(config),
    )
    return app, store, providers


async def _shutdown(runner: web.AppRunner, store: HistoryStore, providers: dict[str, LLMProvider]) -> None:
    logger.info("Shutting down...")
    for provider in providers.values():
        try:
            await provider.close()
        except Exception:
            logger.exception("Error closing LLM provider %s", provider.name)
    await runner.cleanup()
    store.close()
    logger.info("Shutdown complete")


async def run(config_path: str | None = None, env_path: str | None = None) -> None:
    """Serve until cancelled or interrupted."""
    config = load_config(config_path=config_path, env_path=env_path)
    logging.getLogger().setLevel(getattr(logging, config.logging.level.upper(), logging.INFO))

    app, store, providers = build_app(config)
    runner = web.AppRunner(app)
    await runner.setup()
    await web.TCPSite(runner, config.server.host, config.server.port).start()
    logger.info("cronwise listening on http://%s:%d (state in %s)",
                config.server.host, config.server.port, config.home_path)

    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        pass
    finally:
        await _shutdown(runner, store, providers)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging("INFO")
    try:
        asyncio.run(run(config_path=args.config, env_path=args.env))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
