"""host_timescale guard.

Values of host_timescale below 1 crash the server. The guard clamps
the variable back to 1 from inside its change hook, warns everyone in
chat, and resets it to 1 at the end of every map in case a write
slipped past the hook.
"""

from __future__ import annotations
import logging
import time
from typing import TYPE_CHECKING, Callable, Protocol

from core.event_bus import EventBus, MAP_END
from host.convar import ConVar, ConVarRegistry

if TYPE_CHECKING:
    from host.server import GameServer

log = logging.getLogger("timescaleguard.guard.timescale")

CONVAR_NAME = "host_timescale"
TIMESCALE_FLOOR = 1
WARNING_REPEAT_COUNT = 4  # repeated so it isn't lost in busy chat
WARNING_MESSAGE = "Setting host_timescale below 1 will crash the server!"
# Corrective writes per violation before giving up on a hook that keeps
# writing the value back below the floor
MAX_CORRECTIONS = 8


class Broadcaster(Protocol):
    def broadcast(self, text: str) -> None: ...


class BindingError(RuntimeError):
    """The guarded variable is missing or the guard was never bound."""

    def __init__(self, name: str, message: str = None):
        self.name = name
        super().__init__(message or f"console variable '{name}' is not registered")


class TimescaleGuard:
    """Keeps host_timescale at or above 1."""

    def __init__(self, convars: ConVarRegistry, chat: Broadcaster,
                 event_bus: EventBus = None, warning_cooldown: float = 0.0,
                 clock: Callable[[], float] = time.monotonic):
        self.convars = convars
        self.chat = chat
        self.event_bus = event_bus
        self.warning_cooldown = max(0.0, float(warning_cooldown))
        self._clock = clock
        self._convar: ConVar | None = None
        self._correcting = False
        self._last_warning: float | None = None

    @property
    def bound(self) -> bool:
        return self._convar is not None

    @property
    def convar(self) -> ConVar:
        if self._convar is None:
            raise BindingError(CONVAR_NAME, f"guard is not bound to '{CONVAR_NAME}'")
        return self._convar

    def initialize(self) -> None:
        """Bind to host_timescale and start watching it.

        Raises BindingError if the host never registered the variable;
        nothing is hooked in that case.
        """
        if self._convar is not None:
            return
        convar = self.convars.find(CONVAR_NAME)
        if convar is None:
            log.error("Cannot bind: console variable '%s' does not exist", CONVAR_NAME)
            raise BindingError(CONVAR_NAME)

        self._convar = convar
        convar.add_change_hook(self.on_variable_changed)
        if self.event_bus is not None:
            self.event_bus.subscribe(MAP_END, self.on_lifecycle_boundary)
        log.info("Guarding %s (floor %d, current %s)",
                 CONVAR_NAME, TIMESCALE_FLOOR, convar.get_string())

    def shutdown(self) -> None:
        if self._convar is None:
            return
        self._convar.remove_change_hook(self.on_variable_changed)
        if self.event_bus is not None:
            self.event_bus.unsubscribe(MAP_END, self.on_lifecycle_boundary)
        self._convar = None
        log.info("Stopped guarding %s", CONVAR_NAME)

    def on_variable_changed(self, convar: ConVar, old_value: str, new_value: str) -> None:
        """Change hook: clamp to the floor and warn."""
        log.debug("%s changed %r -> %r", CONVAR_NAME, old_value, new_value)
        if self._correcting:
            # _force_floor re-checks the value once our write returns
            return

        target = self.convar
        if target.get_int() >= TIMESCALE_FLOOR:
            return

        log.warning("%s set to %s, forcing back to %d",
                    CONVAR_NAME, target.get_string(), TIMESCALE_FLOOR)
        self._force_floor(target)
        self._warn()

    def on_lifecycle_boundary(self, data: dict = None) -> None:
        """End of map: put the variable back to the floor unconditionally."""
        target = self.convar
        previous = target.get_string()
        self._force_floor(target)
        log.info("Map end: %s reset to %d (was %s)", CONVAR_NAME, TIMESCALE_FLOOR, previous)

    def _force_floor(self, target: ConVar) -> None:
        """Write the floor until it sticks.

        Other hooks run inside our write and may set the value below the
        floor again; those nested notifications are ignored here and the
        value is checked after each write instead.
        """
        self._correcting = True
        try:
            for _ in range(MAX_CORRECTIONS):
                target.set_int(TIMESCALE_FLOOR)
                if target.get_int() >= TIMESCALE_FLOOR:
                    return
            log.error("%s still %s after %d corrective writes",
                      CONVAR_NAME, target.get_string(), MAX_CORRECTIONS)
        finally:
            self._correcting = False

    def _warn(self) -> None:
        now = self._clock()
        if (self.warning_cooldown and self._last_warning is not None
                and now - self._last_warning < self.warning_cooldown):
            log.debug("Warning suppressed, last one %.2fs ago", now - self._last_warning)
            return
        self._last_warning = now
        for _ in range(WARNING_REPEAT_COUNT):
            self.chat.broadcast(WARNING_MESSAGE)


def create_guard(server: GameServer, config: dict = None) -> TimescaleGuard:
    """Build a guard wired to ``server`` using the ``guard`` config section."""
    guard_cfg = (config or {}).get("guard", {})
    return TimescaleGuard(
        convars=server.convars,
        chat=server,
        event_bus=server.event_bus,
        warning_cooldown=guard_cfg.get("warning_cooldown", 0.0),
    )
