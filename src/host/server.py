"""Game server host.

Owns the console variables, the connected clients and the map
lifecycle. Plugins are loaded against it and talk to it only through
the registry, ``broadcast`` and the event bus.
"""

import logging
import threading

from core.event_bus import (
    EventBus, MAP_START, MAP_END, CLIENT_CONNECTED, CLIENT_DISCONNECTED,
    CHAT_BROADCAST,
)
from host.convar import ConVarRegistry

log = logging.getLogger("timescaleguard.host.server")


class Client:
    """A connected user."""

    __slots__ = ("userid", "name", "messages")

    def __init__(self, userid: int, name: str):
        self.userid = userid
        self.name = name
        self.messages: list[str] = []  # chat log, oldest first

    def __repr__(self) -> str:
        return f"Client({self.userid}, {self.name!r})"

    def print_to_chat(self, text: str) -> None:
        self.messages.append(text)


class GameServer:
    """In-process game server host."""

    def __init__(self, event_bus: EventBus = None, convars: ConVarRegistry = None):
        self.event_bus = event_bus or EventBus()
        self.convars = convars or ConVarRegistry()
        self._lock = threading.Lock()
        self._clients: dict[int, Client] = {}
        self._next_userid = 1
        self._plugins: list = []
        self.current_map: str | None = None

        self.convars.create("host_timescale", "1", "Prescale the clock by this amount.")
        self.convars.create("sv_cheats", "0", "Allow cheats on server.")

    # --- Clients ---

    @property
    def clients(self) -> list[Client]:
        with self._lock:
            return list(self._clients.values())

    def connect_client(self, name: str) -> Client:
        with self._lock:
            client = Client(self._next_userid, name)
            self._clients[client.userid] = client
            self._next_userid += 1
        log.info("Client connected: %s (userid %d)", name, client.userid)
        self.event_bus.publish(CLIENT_CONNECTED, {"client": client})
        return client

    def disconnect_client(self, client: Client) -> None:
        with self._lock:
            removed = self._clients.pop(client.userid, None)
        if removed is not None:
            log.info("Client disconnected: %s", client.name)
            self.event_bus.publish(CLIENT_DISCONNECTED, {"client": client})

    def broadcast(self, text: str) -> None:
        """Print ``text`` to every connected client's chat."""
        clients = self.clients
        for client in clients:
            client.print_to_chat(text)
        log.info("[ALL] %s", text)
        self.event_bus.publish(CHAT_BROADCAST, {"text": text, "recipients": len(clients)})

    # --- Plugins ---

    def load_plugin(self, plugin) -> None:
        plugin.initialize()
        self._plugins.append(plugin)
        log.info("Loaded plugin: %s", type(plugin).__name__)

    def unload_plugins(self) -> None:
        while self._plugins:
            plugin = self._plugins.pop()
            plugin.shutdown()
            log.info("Unloaded plugin: %s", type(plugin).__name__)

    @property
    def plugins(self) -> list:
        return list(self._plugins)

    # --- Map lifecycle ---

    def start_map(self, name: str) -> None:
        self.current_map = name
        log.info("Map start: %s", name)
        self.event_bus.publish(MAP_START, {"map": name})

    def end_map(self) -> None:
        """End the current map. Subscribers of MAP_END run before this returns."""
        log.info("Map end: %s", self.current_map)
        self.event_bus.publish(MAP_END, {"map": self.current_map})
        self.current_map = None
