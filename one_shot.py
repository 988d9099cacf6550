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
from typing import Callable, Optional

from session_clock import SessionClock
from session_data import SessionFlags
from signals import Subscription


class OneShotEffect(enum.Enum):
    # value is the SessionFlags field that records completion
    AUTO_CONFIGURE = "has_auto_configured"
    AUTO_PAUSE = "has_auto_paused"
    INVITE_CODE = "has_invite_code_captured"


class EffectState(enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class RunResult(enum.Enum):
    RAN = "ran"
    SKIPPED = "skipped"
    FAILED = "failed"


class OneShotEffectRunner:
    """
    Runs each effect at most once per session.

    The session flags are the only record of completion, so resetting them on
    session start puts every effect back to pending. An action reports that it
    could not act yet by returning False; raising counts as a failure. Either
    way the effect stays pending and the next attempt may still complete it.
    """

    def __init__(self, flags: Optional[SessionFlags] = None):
        self.flags = flags if flags is not None else SessionFlags()

    def state(self, effect: OneShotEffect) -> EffectState:
        if getattr(self.flags, effect.value):
            return EffectState.COMPLETED
        return EffectState.PENDING

    def completed(self, effect: OneShotEffect) -> bool:
        return self.state(effect) is EffectState.COMPLETED

    def reset(self):
        self.flags.reset()

    def try_run(self, effect: OneShotEffect, condition: Callable[[], bool],
                action: Callable[[], Optional[bool]]) -> RunResult:
        if self.completed(effect):
            return RunResult.SKIPPED
        if not condition():
            return RunResult.SKIPPED

        try:
            outcome = action()
        except Exception as e:
            logging.exception(e)
            logging.error(f"{effect.name} failed, will retry")
            return RunResult.FAILED

        if outcome is False:
            logging.debug(f"{effect.name} could not run yet")
            return RunResult.SKIPPED

        self.flags.mark(effect.value)
        logging.debug(f"{effect.name} completed")
        return RunResult.RAN

    def retry(self, clock: SessionClock, interval_ticks: int, effect: OneShotEffect,
              condition: Callable[[], bool], action: Callable[[], Optional[bool]]) -> Subscription:
        """
        try the effect every interval_ticks until it completes, then stop polling
        """

        def attempt(tick: int) -> bool:
            self.try_run(effect, condition, action)
            return self.completed(effect)

        return clock.every(interval_ticks, attempt)
