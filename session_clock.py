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
Turns the engine's raw tick stream and sparse events into session signals.

- session_started: once per save load, synchronously inside the load event.
- world_interactive: first tick after session_started where the player is free.
- participant_joined / participant_left: one per connect / disconnect, with the peer id.
"""

import logging
from typing import Callable, Iterator, Optional

from host_api import Host
from session_data import HostingSessionState, Participant
from signals import Signal, Subscription, SubscriptionGroup

SECOND_TICKS = 60  # the engine updates 60 times per second


class SessionClock:

    def __init__(self, host: Host):
        self._host = host
        self.session_started = Signal("session_started")
        self.world_interactive = Signal("world_interactive")
        self.participant_joined = Signal("participant_joined")
        self.participant_left = Signal("participant_left")
        self._subscriptions = SubscriptionGroup()
        self._interactive_poll: Optional[Subscription] = None
        self.session_count = 0
        self.world_is_interactive = False

    def start(self):
        events = self._host.events
        self._subscriptions.add(events.save_loaded.subscribe(self._on_save_loaded))
        self._subscriptions.add(events.peer_connected.subscribe(self._on_peer_connected))
        self._subscriptions.add(events.peer_disconnected.subscribe(self._on_peer_disconnected))

    def close(self):
        self._subscriptions.dispose()
        self._interactive_poll = None

    def every(self, interval_ticks: int, callback: Callable[[int], bool]) -> Subscription:
        """
        call callback(tick) on every tick that is a multiple of interval_ticks.
        the poll cancels itself as soon as the callback returns True.
        """
        if interval_ticks < 1:
            raise ValueError(f"{interval_ticks=} must be at least 1")

        def on_tick(tick: int):
            if tick % interval_ticks != 0:
                return
            if callback(tick) is True:
                subscription.dispose()

        subscription = self._host.events.update_ticked.subscribe(on_tick)
        self._subscriptions.add(subscription)
        return subscription

    def hosting_state(self) -> HostingSessionState:
        return HostingSessionState.observe(self._host.context, self.world_is_interactive)

    def identify(self, peer_id: str) -> Participant:
        roster = self._host.roster
        display_name = None
        unique_id = None
        # the roster may not have synced yet; a missing identity is not an error
        try:
            display_name = roster.resolve_display_name(peer_id)
        except Exception as e:
            logging.debug(f"Could not resolve display name for {peer_id=}: {e}")
        try:
            unique_id = roster.resolve_unique_id(peer_id)
        except Exception as e:
            logging.debug(f"Could not resolve unique id for {peer_id=}: {e}")
        return Participant(peer_id=str(peer_id), display_name=display_name, unique_id=unique_id)

    def participants(self) -> Iterator[Participant]:
        """
        currently connected participants; call again for a fresh pass
        """
        for peer_id in list(self._host.roster.connected_peer_ids()):
            yield self.identify(str(peer_id))

    def _on_save_loaded(self):
        self.session_count += 1
        self.world_is_interactive = False
        if self._interactive_poll is not None:
            self._interactive_poll.dispose()
        state = self.hosting_state()
        logging.debug(f"Save loaded (session {self.session_count}) "
                      f"{state.is_authoritative_host=} {state.is_multiplayer_active=}")
        self.session_started.emit()
        self._interactive_poll = self.every(1, self._check_interactive)

    def _check_interactive(self, tick: int) -> bool:
        if not self._host.context.is_player_free:
            return False
        self.world_is_interactive = True
        self._interactive_poll = None
        logging.debug(f"World interactive at {tick=}")
        self.world_interactive.emit()
        return True

    def _on_peer_connected(self, peer_id):
        logging.debug(f"Peer connected {peer_id=}")
        self.participant_joined.emit(str(peer_id))

    def _on_peer_disconnected(self, peer_id):
        logging.debug(f"Peer disconnected {peer_id=}")
        self.participant_left.emit(str(peer_id))
