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
Headless stand-in for the game, for trying the helper without launching it.

Ticks at 60 per second and plays a short hosting session: the save loads, the
player gets control after a couple of seconds, the server comes up and two
players join. Edit allow_list.toml in the data directory while it runs to see
the hot reload.

    LOGLEVEL=DEBUG python development/simulated_host.py [data_dir]
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from host_api import Host, HostEvents
from logger import setup_logging
from multiplayer_helper import entry
from session_clock import SECOND_TICKS


class SimulatedWorld:
    def __init__(self):
        self.is_main_player = True
        self.is_multiplayer = True
        self.is_world_ready = False
        self.is_player_free = False
        self.is_paused = False
        self.is_hosting_server = False
        self.peers: Dict[str, Tuple[str, str]] = {}
        self.invite_code: Optional[str] = None
        self.events = HostEvents()

    # CommandSink
    def execute(self, command_line: str):
        logging.info(f"[console] {command_line}")
        if command_line.startswith("kick "):
            label = command_line[len("kick "):]
            for peer_id, (name, _) in list(self.peers.items()):
                if label in (name, peer_id):
                    del self.peers[peer_id]
                    self.events.peer_disconnected.emit(peer_id)

    # Roster
    def connected_peer_ids(self) -> List[str]:
        return list(self.peers)

    def resolve_display_name(self, peer_id: str) -> Optional[str]:
        return self.peers.get(peer_id, (None, None))[0]

    def resolve_unique_id(self, peer_id: str) -> Optional[str]:
        return self.peers.get(peer_id, (None, None))[1]

    # Notifier
    def notify(self, message: str):
        logging.info(f"[hud] {message}")

    # PauseControl
    def should_time_pass(self) -> bool:
        return self.is_world_ready and not self.is_paused

    def halt_player(self):
        logging.info("[world] player halted")

    def pause(self):
        self.is_paused = True
        logging.info("[world] paused")

    def resume(self):
        self.is_paused = False
        logging.info("[world] resumed")

    # ChatBox
    def submit(self, text: str):
        logging.info(f"[chat] {text}")
        if text == "/pause":
            self.is_paused = not self.is_paused

    # Clipboard
    def set_text(self, text: str):
        logging.info(f"[clipboard] {text}")

    # InviteCodeSource
    def try_get_invite_code(self) -> Optional[str]:
        return self.invite_code


async def play(host: Host, world: SimulatedWorld):
    events = host.events
    # tick -> what happens on that tick
    script = {
        1: lambda: (setattr(world, "is_world_ready", True), events.save_loaded.emit()),
        2 * SECOND_TICKS: lambda: setattr(world, "is_player_free", True),
        3 * SECOND_TICKS: lambda: setattr(world, "is_hosting_server", True),
        5 * SECOND_TICKS: lambda: setattr(world, "invite_code", "S1234ABCD"),
        6 * SECOND_TICKS: lambda: join(world, events, "1001", "Alice", "76561190000000001"),
        7 * SECOND_TICKS: lambda: join(world, events, "1002", "Mallory", "76561190000000002"),
        8 * SECOND_TICKS: lambda: events.button_pressed.emit("P"),
    }

    tick = 0
    while True:
        tick += 1
        action = script.get(tick)
        if action is not None:
            action()
        events.update_ticked.emit(tick)
        await asyncio.sleep(1 / SECOND_TICKS)


def join(world: SimulatedWorld, events: HostEvents, peer_id: str, name: str, unique_id: str):
    world.peers[peer_id] = (name, unique_id)
    events.peer_connected.emit(peer_id)


def main(data_dir: Path):
    world = SimulatedWorld()
    host = Host(
        context=world,
        events=world.events,
        commands=world,
        roster=world,
        pause=world,
        notifier=world,
        chat=world,
        clipboard=world,
        invite_codes=world,
    )

    helper = entry(host, data_dir)
    if helper is None:
        return

    try:
        logging.info("Ctrl^C to quit")
        asyncio.run(play(host, world))
    except KeyboardInterrupt:
        logging.info("Cancelled ...")
    finally:
        logging.info("Stopping simulated host ...")
        helper.close()


if __name__ == "__main__":
    setup_logging()
    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(".")
    data_dir.mkdir(parents=True, exist_ok=True)
    main(data_dir)
