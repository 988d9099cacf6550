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
from typing import Callable, List, Optional


class Subscription:
    """
    handle returned by Signal.subscribe; dispose() detaches the handler
    """

    def __init__(self, signal: "Signal", handler: Callable):
        self._signal = signal
        self._handler = handler

    @property
    def active(self) -> bool:
        return self._signal is not None

    def dispose(self):
        if self._signal is None:
            return  # already disposed
        self._signal._remove(self._handler)
        self._signal = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.dispose()


class Signal:

    def __init__(self, name: str):
        self.name = name
        self._handlers: List[Callable] = []

    def subscribe(self, handler: Callable) -> Subscription:
        self._handlers.append(handler)
        logging.debug(f"Subscribed {getattr(handler, '__qualname__', handler)} to {self.name}")
        return Subscription(self, handler)

    def _remove(self, handler: Callable):
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass  # already gone
        logging.debug(f"Unsubscribed {getattr(handler, '__qualname__', handler)} from {self.name}")

    def emit(self, *args):
        # handlers may unsubscribe themselves while we iterate
        for handler in list(self._handlers):
            try:
                handler(*args)
            except Exception as e:
                logging.exception(e)
                logging.error(f"Handler for {self.name} failed")

    def __len__(self):
        return len(self._handlers)


class SubscriptionGroup:
    """
    owns several subscriptions so a component can release them together
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []

    def add(self, subscription: Optional[Subscription]) -> Optional[Subscription]:
        self._subscriptions = [existing for existing in self._subscriptions if existing.active]
        if subscription is not None:
            self._subscriptions.append(subscription)
        return subscription

    def dispose(self):
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions.clear()

    def __len__(self):
        return sum(1 for subscription in self._subscriptions if subscription.active)
