"""timescaleguard: composition root.

Builds a GameServer with the host_timescale guard loaded:
  1. Loads configuration (YAML + .env)
  2. Configures logging
  3. Creates the host and its console variables
  4. Loads the guard plugin against the host
"""

import logging

from config import load_config
from core.logging_config import setup_logging
from core.event_bus import EventBus
from guard.timescale import create_guard
from host.server import GameServer

log = logging.getLogger("timescaleguard.main")


def build_server(config: dict = None) -> GameServer:
    if config is None:
        config = load_config()
    setup_logging(config.get("logging", {}).get("level"))

    server = GameServer(event_bus=EventBus())
    server.load_plugin(create_guard(server, config))
    log.info("Server ready with %d plugin(s)", len(server.plugins))
    return server
