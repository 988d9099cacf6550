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

import enum
import logging
from typing import Iterable, Set

from allow_list import AllowList, AllowListStore
from config import HelperSettings
from host_api import Host
from session_data import Participant


class Verdict(enum.Enum):
    ADMIT = "admit"
    EVICT = "evict"


def evaluate(participant: Participant, allow_list: AllowList) -> Verdict:
    """
    a participant is admitted when any one of its identities is listed.
    an empty allow-list admits everyone.
    """
    if allow_list.is_empty:
        return Verdict.ADMIT
    if participant.display_name and participant.display_name in allow_list.display_names:
        return Verdict.ADMIT
    if participant.unique_id and participant.unique_id in allow_list.unique_ids:
        return Verdict.ADMIT
    if participant.peer_id and participant.peer_id in allow_list.peer_ids:
        return Verdict.ADMIT
    return Verdict.EVICT


class AccessGate:

    def __init__(self, host: Host, store: AllowListStore, settings: HelperSettings):
        self._host = host
        self._store = store
        self.settings = settings
        self._evicted: Set[str] = set()

    def check(self, participant: Participant) -> Verdict:
        if not self._host.context.is_main_player:
            return Verdict.ADMIT  # only the host gates

        # read the reference once so one check never mixes two snapshots
        allow_list = self._store.current
        verdict = evaluate(participant, allow_list)
        logging.debug(f"{participant.label} -> {verdict.name} (allow-list generation {allow_list.generation})")
        if verdict is Verdict.EVICT:
            self.evict(participant)
        return verdict

    def rescan(self, participants: Iterable[Participant]) -> int:
        evicted = 0
        for participant in participants:
            if self.check(participant) is Verdict.EVICT:
                evicted += 1
        if evicted:
            logging.info(f"Re-check removed {evicted} player(s) not on the allow-list")
        return evicted

    def evict(self, participant: Participant):
        if participant.peer_id in self._evicted:
            logging.debug(f"{participant.label} already removed this session")
            return

        command = f"kick {participant.label}"
        try:
            self._host.commands.execute(command)
        except Exception as e:
            logging.exception(e)
            logging.error(f"Could not remove {participant.label}")
            return

        self._evicted.add(participant.peer_id)
        logging.info(f"Removed {participant.label}: not on the allow-list")
        self._notify(f"{participant.label} is not on the allow-list and was removed")

    def forget(self, peer_id: str):
        self._evicted.discard(peer_id)

    def reset(self):
        self._evicted.clear()

    def _notify(self, message: str):
        notifier = self._host.notifier
        if notifier is None or not self.settings.show_hud_notifications:
            return
        try:
            notifier.notify(message)
        except Exception as e:
            logging.warning(f"Notification failed: {e}")
