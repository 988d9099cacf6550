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
from typing import Dict

from access_gate import AccessGate
from allow_list import AllowListStore
from auto_configure import AutoConfigure
from auto_pause import AutoPause
from config import HelperSettings
from host_api import Host
from invite_code import InviteCodeCapture
from one_shot import OneShotEffect, OneShotEffectRunner, RunResult
from session_clock import SECOND_TICKS, SessionClock
from session_data import SessionFlags
from signals import Subscription, SubscriptionGroup


class SessionPhase(enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"


class SessionManager:
    """
    Wires session signals to the gate and the one-shot effects.

    Session start is the only reset point: flags, eviction memory and every
    per-session poll are dropped there and rebuilt for the new session.
    """

    def __init__(self, host: Host, settings: HelperSettings, store: AllowListStore):
        self._host = host
        self.settings = settings
        self.clock = SessionClock(host)
        self.flags = SessionFlags()
        self.runner = OneShotEffectRunner(self.flags)
        self.gate = AccessGate(host, store, settings)
        self.auto_pause = AutoPause(host, settings)
        self.auto_configure = AutoConfigure(host, settings)
        self.invite_code = InviteCodeCapture(host, settings)
        self.phase = SessionPhase.IDLE

        self._subscriptions = SubscriptionGroup()
        self._input_subscriptions = SubscriptionGroup()
        self._gate_subscriptions = SubscriptionGroup()
        self._session_polls = SubscriptionGroup()
        self._retries: Dict[OneShotEffect, Subscription] = {}

    def start(self):
        self.clock.start()
        self._subscriptions.add(self.clock.session_started.subscribe(self._on_session_started))
        self._subscriptions.add(self.clock.world_interactive.subscribe(self._on_world_interactive))
        self._subscribe_inputs()
        self._set_gate_enabled(self.settings.allow_list_enabled)
        logging.debug("Session manager started")

    def close(self):
        self._session_polls.dispose()
        self._retries.clear()
        self._gate_subscriptions.dispose()
        self._input_subscriptions.dispose()
        self._subscriptions.dispose()
        self.clock.close()
        self.phase = SessionPhase.IDLE
        logging.debug("Session manager closed")

    def apply_settings(self, settings: HelperSettings):
        previous = self.settings
        self.settings = settings
        for component in (self.gate, self.auto_pause, self.auto_configure, self.invite_code):
            component.settings = settings

        if previous.allow_list_enabled != settings.allow_list_enabled:
            self._set_gate_enabled(settings.allow_list_enabled)
            logging.info(f"Allow-list {'enabled' if settings.allow_list_enabled else 'disabled'}")
        self._subscribe_inputs()

    def _hosting(self) -> bool:
        return self.clock.hosting_state().is_hosting

    def _subscribe_inputs(self):
        events = self._host.events
        self._input_subscriptions.dispose()
        if self.settings.auto_pause_enabled or self.settings.auto_configure_enabled:
            self._input_subscriptions.add(events.player_warped.subscribe(self._on_player_warped))
        if self.settings.enable_manual_toggle:
            self._input_subscriptions.add(events.button_pressed.subscribe(self._on_button_pressed))

    def _set_gate_enabled(self, enabled: bool):
        self._gate_subscriptions.dispose()
        if not enabled:
            return
        self._gate_subscriptions.add(self.clock.participant_joined.subscribe(self._on_participant_joined))
        self._gate_subscriptions.add(self.clock.participant_left.subscribe(self.gate.forget))

    def _on_session_started(self):
        if self.phase is SessionPhase.ACTIVE:
            logging.debug("New save loaded while a session was active, starting over")
        self.phase = SessionPhase.ACTIVE
        self.runner.reset()
        self.gate.reset()
        self._session_polls.dispose()
        self._retries.clear()

        if self.settings.allow_list_enabled:
            self._session_polls.add(self.clock.every(1, self._rescan_once))
        if self.settings.invite_code_enabled and self.invite_code.available:
            self._session_polls.add(self.runner.retry(
                self.clock, SECOND_TICKS, OneShotEffect.INVITE_CODE,
                self.invite_code.server_ready, self.invite_code.capture_once,
            ))
        logging.debug(f"Session started, flags reset: {self.flags}")

    def _rescan(self):
        # peers already removed this session are skipped
        if self.settings.allow_list_enabled and self._host.context.is_main_player:
            self.gate.rescan(self.clock.participants())

    def _rescan_once(self, tick: int) -> bool:
        self._rescan()
        return True

    def _on_world_interactive(self):
        self._rescan()
        if self.settings.auto_pause_enabled:
            self._attempt(OneShotEffect.AUTO_PAUSE, self.auto_pause.pause_once)
        if self.settings.auto_configure_enabled:
            self._attempt(OneShotEffect.AUTO_CONFIGURE, self.auto_configure.configure_once)

    def _attempt(self, effect: OneShotEffect, action):
        result = self.runner.try_run(effect, self._hosting, action)
        if result is RunResult.RAN or self.runner.completed(effect):
            return
        retry = self._retries.get(effect)
        if retry is not None and retry.active:
            return
        logging.debug(f"{effect.name} {result.name.lower()}, retrying every second")
        self._retries[effect] = self._session_polls.add(
            self.runner.retry(self.clock, SECOND_TICKS, effect, self._hosting, action)
        )

    def _on_player_warped(self, is_local_player: bool):
        if not is_local_player or self.phase is not SessionPhase.ACTIVE:
            return
        if self.settings.auto_pause_enabled:
            self.runner.try_run(OneShotEffect.AUTO_PAUSE, self._hosting, self.auto_pause.pause_once)
        if self.settings.auto_configure_enabled:
            self.runner.try_run(OneShotEffect.AUTO_CONFIGURE, self._hosting, self.auto_configure.configure_once)

    def _on_button_pressed(self, button):
        self.auto_pause.toggle(str(button))

    def _on_participant_joined(self, peer_id: str):
        if not self._host.context.is_main_player:
            return
        participant = self.clock.identify(peer_id)
        if self.settings.show_player_join_info:
            logging.info(f"Player joined: display_name={participant.display_name or 'Unknown'} "
                         f"unique_id={participant.unique_id or 'Unknown'} peer_id={participant.peer_id}")
        self.gate.check(participant)
