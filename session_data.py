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

import dataclasses
from typing import Optional

from host_api import HostContext


@dataclasses.dataclass(frozen=True)
class Participant:
    peer_id: str
    display_name: Optional[str] = None  # None until the roster has synced
    unique_id: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.peer_id


@dataclasses.dataclass
class SessionFlags:
    """
    one flag per one-shot effect, scoped to a single hosting session.
    only reset() may clear a flag.
    """
    has_auto_configured: bool = False
    has_auto_paused: bool = False
    has_invite_code_captured: bool = False

    def reset(self):
        self.has_auto_configured = False
        self.has_auto_paused = False
        self.has_invite_code_captured = False

    def mark(self, name: str):
        if not hasattr(self, name):
            raise AttributeError(f"No session flag named {name}")
        setattr(self, name, True)


@dataclasses.dataclass(frozen=True)
class HostingSessionState:
    is_authoritative_host: bool
    is_multiplayer_active: bool
    world_interactive: bool

    @property
    def is_hosting(self) -> bool:
        return self.is_authoritative_host and self.is_multiplayer_active and self.world_interactive

    @staticmethod
    def observe(context: HostContext, world_interactive: bool) -> "HostingSessionState":
        return HostingSessionState(
            is_authoritative_host=bool(context.is_main_player),
            is_multiplayer_active=bool(context.is_multiplayer),
            world_interactive=world_interactive,
        )
