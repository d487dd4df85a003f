"""Entry point: ``python -m storybridge.run`` (or the ``storybridge`` script).

Environment variables supply credentials and defaults (see
``storybridge.config``); command-line flags override the poll cadence:

    TELEGRAM_BOT_TOKEN=…  TELEGRAM_CHAT_ID=…  IG_SESSION_ID=…
    (or IG_USERNAME=…  IG_PASSWORD=… instead of IG_SESSION_ID)
    python -m storybridge.run --interval 120

Stops cleanly on SIGINT/SIGTERM after the cycle in progress.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import signal
import sys
from typing import Sequence

from .config import Config
from .deliver_telegram import TelegramSink
from .errors import AuthError, ConfigError
from .ig_session import login_session_id
from .ingest_instagram import InstagramStorySource
from .log_redaction import apply_global_log_redaction
from .pipeline import CrosspostPipeline
from .scheduler import Scheduler
from .tracker import Tracker

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="storybridge",
        description="Crosspost new Instagram stories to a Telegram chat.",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Poll interval in seconds (overrides POLL_INTERVAL_S).",
    )
    parser.add_argument(
        "--include-backlog",
        action="store_true",
        help="Also forward stories that are already up at startup.",
    )
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    """Build a ``Config`` from env + CLI overrides; raise ``ConfigError``."""
    cfg = Config()
    overrides: dict[str, object] = {}
    if args.interval is not None:
        overrides["poll_interval_s"] = args.interval
    if args.include_backlog:
        overrides["crosspost_new_only"] = False
    if overrides:
        cfg = dataclasses.replace(cfg, **overrides)
    problems = cfg.validate()
    if problems:
        raise ConfigError("; ".join(problems))
    return cfg


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    apply_global_log_redaction()

    try:
        cfg = load_config(args)
    except ConfigError as exc:
        logger.error("Config error: %s", exc)
        return 2
    logging.getLogger().setLevel(cfg.log_level)

    source: InstagramStorySource | None = None
    sink: TelegramSink | None = None
    try:
        session_id = cfg.ig_session_id or login_session_id(
            cfg.ig_username, cfg.ig_password, cfg.ig_settings_path,
        )
        source = InstagramStorySource(session_id, cfg.ig_user_id, timeout=cfg.http_timeout_s)
        sink = TelegramSink(cfg.telegram_bot_token, cfg.telegram_chat_id, timeout=cfg.http_timeout_s)
        source.authenticate()
        sink.authenticate()
    except AuthError as exc:
        logger.error("%s authentication failed: %s", exc.service or "startup", exc)
        for obj in (source, sink):
            if obj is not None:
                obj.close()
        return 2

    pipeline = CrosspostPipeline(source, sink, Tracker(), skip_backlog=cfg.crosspost_new_only)
    scheduler = Scheduler(pipeline, cfg.poll_interval_s)

    def _on_signal(signum: int, _frame: object) -> None:
        logger.info("Received signal %d, stopping after current cycle.", signum)
        scheduler.stop()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    try:
        scheduler.run_forever()
    finally:
        source.close()
        sink.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
