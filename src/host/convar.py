"""Console variables.

Process-wide named settings owned by the host. Values are stored as
text, the way a game console keeps them, and read back as int or
float. Every write that changes the text is delivered synchronously to
the variable's change hooks before the write returns.
"""

import logging
import math
import re
import threading
from typing import Callable

log = logging.getLogger("timescaleguard.host.convar")

# hook(convar, old_value, new_value)
ChangeHook = Callable[["ConVar", str, str], None]

# Leading number the way atof() reads it: "2x" -> 2, "1e2" -> 100
_NUMBER_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _parse_number(text: str) -> float:
    """Console number semantics: unparsable or non-finite text reads as 0."""
    m = _NUMBER_RE.match(text)
    if m is None:
        return 0.0
    value = float(m.group(0))
    return value if math.isfinite(value) else 0.0


def _format_value(value) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class ConVar:
    """A single named console variable."""

    __slots__ = ("name", "default", "description", "_value", "_hooks", "_lock")

    def __init__(self, name: str, default: str = "0", description: str = ""):
        self.name = name
        self.default = _format_value(default)
        self.description = description
        self._value = self.default
        self._hooks: list[ChangeHook] = []
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"ConVar({self.name!r}, value={self._value!r})"

    # --- Reads ---

    def get_string(self) -> str:
        with self._lock:
            return self._value

    def get_float(self) -> float:
        return _parse_number(self.get_string())

    def get_int(self) -> int:
        """Integer value, truncated toward zero ("0.5" -> 0, "fast" -> 0)."""
        return int(self.get_float())

    # --- Writes ---

    def set_string(self, value: str, silent: bool = False) -> None:
        """Store a new value and run the change hooks.

        Writing the current value again is not a change and runs no
        hooks. ``silent`` stores the value without notifying anyone;
        it stands in for host paths that bypass the change channel.
        """
        new_value = _format_value(value)
        with self._lock:
            old_value = self._value
            if new_value == old_value:
                return
            self._value = new_value
            hooks = list(self._hooks)

        log.debug("%s: %r -> %r%s", self.name, old_value, new_value,
                  " (silent)" if silent else "")
        if silent:
            return

        for hook in hooks:
            try:
                hook(self, old_value, new_value)
            except Exception:
                log.exception("Error in change hook for '%s': %s", self.name,
                              getattr(hook, "__qualname__", repr(hook)))

    def set_int(self, value: int, silent: bool = False) -> None:
        self.set_string(str(int(value)), silent=silent)

    def set_float(self, value: float, silent: bool = False) -> None:
        self.set_string(_format_value(float(value)), silent=silent)

    # --- Change hooks ---

    def add_change_hook(self, hook: ChangeHook) -> None:
        with self._lock:
            self._hooks.append(hook)

    def remove_change_hook(self, hook: ChangeHook) -> None:
        with self._lock:
            self._hooks = [h for h in self._hooks if h != hook]

    @property
    def hook_count(self) -> int:
        with self._lock:
            return len(self._hooks)


class ConVarRegistry:
    """Lookup-by-name table of the host's console variables."""

    def __init__(self):
        self._convars: dict[str, ConVar] = {}
        self._lock = threading.Lock()

    def create(self, name: str, default: str = "0", description: str = "") -> ConVar:
        """Register a variable, or return the existing one of that name."""
        with self._lock:
            convar = self._convars.get(name)
            if convar is None:
                convar = ConVar(name, default, description)
                self._convars[name] = convar
                log.debug("Registered convar %s = %r", name, convar.default)
            return convar

    def find(self, name: str) -> ConVar | None:
        with self._lock:
            return self._convars.get(name)
