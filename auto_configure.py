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

import logging
from typing import List

from config import HelperSettings
from host_api import Host


class AutoConfigure:

    def __init__(self, host: Host, settings: HelperSettings):
        self._host = host
        self.settings = settings

    def commands(self) -> List[str]:
        commands = [
            f"sleepAnnounceMode {self.settings.sleep_announce_mode}",
            f"moveBuildingPermission {self.settings.move_building_permission}",
        ]
        if self.settings.unban_all_enabled:
            commands.append("unbanAll")
        return commands

    def configure_once(self):
        # commands are idempotent setters; a failed attempt is repeated whole
        logging.info("Applying multiplayer settings")
        for command in self.commands():
            self._host.commands.execute(command)
            logging.debug(f"Executed {command!r}")
        logging.info("Multiplayer settings applied")
