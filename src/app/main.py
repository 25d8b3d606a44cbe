# src/app/main.py
"""
Process entrypoint: wire config, game client, runtime and observers, then
serve the observer surface with uvicorn.

    scout-companion --config config/companion.yaml --tui
"""

from __future__ import annotations

import argparse
import logging
import threading
from pathlib import Path
from typing import List, Optional

import uvicorn

from agent.logging_config import configure_logging
from agent.runtime import CompanionRuntime
from bot_core.net import create_game_client
from env.loader import PROJECT_ROOT, load_config
from env.schema import CompanionConfig
from llm_stack.responder import build_response_generator
from monitoring.bus import EventBus
from monitoring.dashboard_tui import TuiDashboard
from monitoring.logger import JsonFileLogger

from .server import create_app

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scout-companion", description="Minecraft companion bot")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--log-level", default=None, help="override logging.level")
    parser.add_argument("--tui", action="store_true", help="show the terminal dashboard")
    return parser


def build_runtime(config: CompanionConfig, bus: EventBus) -> CompanionRuntime:
    world = create_game_client(config)
    responder = build_response_generator(config.model, bot_name=config.game.bot_name)
    return CompanionRuntime(world, bus, config, responder)


def _event_log_path(raw: str) -> Path:
    path = Path(raw)
    return path if path.is_absolute() else PROJECT_ROOT / path


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    configure_logging(args.log_level or config.logging.level)

    bus = EventBus()
    runtime = build_runtime(config, bus)
    log.info(
        "Starting %s for %s:%s (AI: %s)",
        config.game.bot_name,
        config.game.host,
        config.game.port,
        "model loaded" if runtime.ai_enabled else "fallback replies",
    )

    file_logger: Optional[JsonFileLogger] = None
    if config.logging.event_log:
        file_logger = JsonFileLogger(_event_log_path(config.logging.event_log), bus)

    tui: Optional[TuiDashboard] = None
    if args.tui or config.dashboard.tui:
        tui = TuiDashboard(bus)
        threading.Thread(target=tui.run, name="tui", daemon=True).start()

    app = create_app(bus, runtime, observer_queue_size=config.dashboard.observer_queue_size)
    log.info("Observer surface on http://%s:%d", config.dashboard.host, config.dashboard.port)
    try:
        uvicorn.run(app, host=config.dashboard.host, port=config.dashboard.port, log_level="warning")
    finally:
        if tui is not None:
            tui.close()
        if file_logger is not None:
            file_logger.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
