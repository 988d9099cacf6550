"""
MultiplayerHelper
Copyright (C) 2024 thiccaxe

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

"""
What the helper needs from the game it is embedded in.

The host process owns the engine and fills in these capabilities; the helper
never reaches into the engine any other way. Optional capabilities are left
as None on Host when the engine cannot provide them.
"""

import dataclasses
from typing import Iterable, Optional, Protocol

from signals import Signal


class HostContext(Protocol):
    @property
    def is_main_player(self) -> bool:
        """True when this process is the authoritative host."""

    @property
    def is_multiplayer(self) -> bool:
        """True while a multiplayer session is running."""

    @property
    def is_world_ready(self) -> bool:
        """True once a save is loaded and the world exists."""

    @property
    def is_player_free(self) -> bool:
        """True when the local player can act (no menu, cutscene or event)."""


class CommandSink(Protocol):
    def execute(self, command_line: str) -> None:
        """Run a console command; may raise."""


class Roster(Protocol):
    def connected_peer_ids(self) -> Iterable[str]:
        ...

    def resolve_display_name(self, peer_id: str) -> Optional[str]:
        ...

    def resolve_unique_id(self, peer_id: str) -> Optional[str]:
        ...


class Notifier(Protocol):
    def notify(self, message: str) -> None:
        ...


class PauseControl(Protocol):
    @property
    def is_paused(self) -> bool:
        ...

    def should_time_pass(self) -> bool:
        ...

    def halt_player(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def resume(self) -> None:
        ...


class ChatBox(Protocol):
    def submit(self, text: str) -> None:
        """Type text into the chat box and send it, as the player would."""


class Clipboard(Protocol):
    def set_text(self, text: str) -> None:
        ...


class InviteCodeSource(Protocol):
    @property
    def is_hosting_server(self) -> bool:
        """True once the engine has started its network server."""

    def try_get_invite_code(self) -> Optional[str]:
        ...


@dataclasses.dataclass
class HostEvents:
    save_loaded: Signal = dataclasses.field(default_factory=lambda: Signal("save_loaded"))
    update_ticked: Signal = dataclasses.field(default_factory=lambda: Signal("update_ticked"))  # (tick)
    peer_connected: Signal = dataclasses.field(default_factory=lambda: Signal("peer_connected"))  # (peer_id)
    peer_disconnected: Signal = dataclasses.field(default_factory=lambda: Signal("peer_disconnected"))  # (peer_id)
    player_warped: Signal = dataclasses.field(default_factory=lambda: Signal("player_warped"))  # (is_local_player)
    button_pressed: Signal = dataclasses.field(default_factory=lambda: Signal("button_pressed"))  # (button)


@dataclasses.dataclass
class Host:
    context: HostContext
    events: HostEvents
    commands: CommandSink
    roster: Roster
    pause: PauseControl
    notifier: Optional[Notifier] = None
    chat: Optional[ChatBox] = None
    clipboard: Optional[Clipboard] = None
    invite_codes: Optional[InviteCodeSource] = None
