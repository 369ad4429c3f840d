import os
import sys
import pytest

# Ensure src/ (containing the top-level packages) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
SRC_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..', 'src'))
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from core.event_bus import EventBus
from host.convar import ConVarRegistry
from host.server import GameServer


class RecordingChat:
    """Broadcaster that just remembers what was sent."""

    def __init__(self):
        self.sent = []

    def broadcast(self, text):
        self.sent.append(text)


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture()
def event_bus():
    return EventBus()


@pytest.fixture()
def convars():
    registry = ConVarRegistry()
    registry.create('host_timescale', '1')
    return registry


@pytest.fixture()
def chat():
    return RecordingChat()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def server(event_bus):
    return GameServer(event_bus=event_bus)
