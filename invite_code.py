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


class InviteCodeCapture:

    def __init__(self, host: Host, settings: HelperSettings):
        self._host = host
        self.settings = settings

    @property
    def available(self) -> bool:
        return self._host.invite_codes is not None

    def server_ready(self) -> bool:
        context = self._host.context
        source = self._host.invite_codes
        if source is None:
            return False
        return bool(context.is_world_ready and context.is_main_player and source.is_hosting_server)

    def capture_once(self) -> Optional[bool]:
        logging.debug("Looking for an invite code")
        code = self._host.invite_codes.try_get_invite_code()
        if code is None or not code.strip():
            logging.debug("Invite code not available yet")
            return False

        code = code.strip()
        self._copy(code)
        if self.settings.show_hud_notifications and self._host.notifier is not None:
            try:
                self._host.notifier.notify(f"Invite code {code} copied to clipboard")
            except Exception as e:
                logging.warning(f"Notification failed: {e}")
        logging.info(f"Invite code {code} captured")
        return True

    def _copy(self, code: str):
        clipboard = self._host.clipboard
        try:
            if clipboard is None:
                raise RuntimeError("no clipboard available")
            clipboard.set_text(code)
        except Exception as e:
            logging.error(f"Could not copy invite code to clipboard: {e}")
            if self.settings.show_manual_copy_message:
                logging.warning(f"Invite code: {code} (copy it manually)")
