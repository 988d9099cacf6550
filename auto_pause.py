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
from typing import Optional

from config import HelperSettings
from host_api import Host

PAUSE_CHAT_COMMAND = "/pause"


class AutoPause:
    """
    pauses the world once when the host first becomes free to act, and
    handles the manual pause hotkey
    """

    def __init__(self, host: Host, settings: HelperSettings):
        self._host = host
        self.settings = settings

    def pause_once(self) -> Optional[bool]:
        pause = self._host.pause
        logging.debug(f"Attempting to auto-pause. {pause.is_paused=} {pause.should_time_pass()=}")

        if pause.is_paused:
            logging.debug("Game is already paused")
            return True
        if not pause.should_time_pass():
            return False

        if self.settings.use_direct_pause:
            # direct pause may conflict with other mods
            pause.halt_player()
            pause.pause()
            self._notify("Game paused")
            logging.info("Game auto-paused")
            return True

        if self._host.chat is None:
            logging.debug("Chat box unavailable, cannot request a pause vote yet")
            return False
        self._host.chat.submit(PAUSE_CHAT_COMMAND)
        logging.info("Game auto-paused through the chat box")
        return True

    def toggle(self, button: str) -> bool:
        context = self._host.context
        if not self.settings.enable_manual_toggle:
            return False
        if button.upper() != self.settings.pause_toggle_key.upper():
            return False
        if not (context.is_world_ready and context.is_main_player and context.is_multiplayer):
            return False

        pause = self._host.pause
        if pause.is_paused:
            pause.resume()
            self._notify("Game resumed")
            logging.info("Game resumed manually")
            return True

        if not self.settings.use_direct_pause:
            # the hotkey only pauses directly; in chatbox mode it can only resume
            logging.debug("Manual pause needs the direct pause method")
            return False

        pause.halt_player()
        pause.pause()
        self._notify("Game paused")
        logging.info("Game paused manually")
        return True

    def _notify(self, message: str):
        notifier = self._host.notifier
        if notifier is None:
            return
        try:
            notifier.notify(message)
        except Exception as e:
            logging.warning(f"Notification failed: {e}")
