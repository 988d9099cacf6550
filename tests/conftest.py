import asyncio
from typing import Dict, List, Optional, Tuple

import pytest
import tomlkit

from allow_list import AllowListStore
from config import HelperSettings
from host_api import Host, HostEvents


class FakeContext:
    def __init__(self) -> None:
        self.is_main_player = True
        self.is_multiplayer = True
        self.is_world_ready = True
        self.is_player_free = False


class FakeCommands:
    def __init__(self) -> None:
        self.executed: List[str] = []
        self.failures_left = 0

    def execute(self, command_line: str) -> None:
        if self.failures_left > 0:
            self.failures_left -= 1
            raise RuntimeError(f"command failed: {command_line}")
        self.executed.append(command_line)


class FakeRoster:
    def __init__(self) -> None:
        self.peers: Dict[str, Tuple[Optional[str], Optional[str]]] = {}
        self.broken = False

    def connected_peer_ids(self) -> List[str]:
        return list(self.peers)

    def resolve_display_name(self, peer_id: str) -> Optional[str]:
        if self.broken:
            raise RuntimeError("roster unavailable")
        return self.peers.get(peer_id, (None, None))[0]

    def resolve_unique_id(self, peer_id: str) -> Optional[str]:
        if self.broken:
            raise RuntimeError("roster unavailable")
        return self.peers.get(peer_id, (None, None))[1]


class FakeNotifier:
    def __init__(self) -> None:
        self.messages: List[str] = []
        self.broken = False

    def notify(self, message: str) -> None:
        if self.broken:
            raise RuntimeError("hud unavailable")
        self.messages.append(message)


class FakePause:
    def __init__(self) -> None:
        self.is_paused = False
        self.time_passes = True
        self.halted = 0

    def should_time_pass(self) -> bool:
        return self.time_passes

    def halt_player(self) -> None:
        self.halted += 1

    def pause(self) -> None:
        self.is_paused = True

    def resume(self) -> None:
        self.is_paused = False


class FakeChat:
    def __init__(self) -> None:
        self.submitted: List[str] = []

    def submit(self, text: str) -> None:
        self.submitted.append(text)


class FakeClipboard:
    def __init__(self) -> None:
        self.text: Optional[str] = None
        self.broken = False

    def set_text(self, text: str) -> None:
        if self.broken:
            raise OSError("no display")
        self.text = text


class FakeInviteCodes:
    def __init__(self) -> None:
        self.is_hosting_server = False
        self.code: Optional[str] = None
        self.requests = 0

    def try_get_invite_code(self) -> Optional[str]:
        self.requests += 1
        return self.code


class FakeEngine:
    """Drives the helper the way the game loop would."""

    def __init__(self) -> None:
        self.context = FakeContext()
        self.events = HostEvents()
        self.commands = FakeCommands()
        self.roster = FakeRoster()
        self.notifier = FakeNotifier()
        self.pause = FakePause()
        self.chat = FakeChat()
        self.clipboard = FakeClipboard()
        self.invite_codes = FakeInviteCodes()
        self.tick = 0
        self.host = Host(
            context=self.context,
            events=self.events,
            commands=self.commands,
            roster=self.roster,
            pause=self.pause,
            notifier=self.notifier,
            chat=self.chat,
            clipboard=self.clipboard,
            invite_codes=self.invite_codes,
        )

    def load_save(self) -> None:
        self.events.save_loaded.emit()

    def advance(self, ticks: int = 1) -> None:
        for _ in range(ticks):
            self.tick += 1
            self.events.update_ticked.emit(self.tick)

    def advance_seconds(self, seconds: int = 1) -> None:
        self.advance(60 * seconds)

    def connect(self, peer_id: str, display_name: Optional[str] = None, unique_id: Optional[str] = None) -> None:
        self.roster.peers[peer_id] = (display_name, unique_id)
        self.events.peer_connected.emit(peer_id)

    def disconnect(self, peer_id: str) -> None:
        self.roster.peers.pop(peer_id, None)
        self.events.peer_disconnected.emit(peer_id)

    def kicked(self) -> List[str]:
        return [command for command in self.commands.executed if command.startswith("kick ")]


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def settings() -> HelperSettings:
    return HelperSettings(allow_list_enabled=True, unban_all_enabled=False)


def write_allow_list(path, display_names=(), unique_ids=(), peer_ids=()) -> None:
    document = tomlkit.document()
    document.add("display_names", list(display_names))
    document.add("unique_ids", list(unique_ids))
    document.add("peer_ids", list(peer_ids))
    path.write_text(tomlkit.dumps(document), encoding="utf-8")


@pytest.fixture
def make_store(tmp_path):
    def _make_store(display_names=(), unique_ids=(), peer_ids=()) -> AllowListStore:
        path = tmp_path / "allow_list.toml"
        write_allow_list(path, display_names, unique_ids, peer_ids)
        store = AllowListStore(path)
        asyncio.run(store.load())
        return store

    return _make_store
