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

import asyncio
import dataclasses
import logging
import threading
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, Optional as _Optional, Tuple

import aiofiles
import aiofiles.os
import tomlkit
import tomlkit.exceptions
import voluptuous.error
from voluptuous import Schema, Optional

ALLOW_LIST_KINDS = ("display_names", "unique_ids", "peer_ids")


class AllowListLoadError(Exception): pass


def _clean(values: Iterable[str]) -> FrozenSet[str]:
    # kept exactly as written; only blank entries are dropped
    return frozenset(value for value in values if value and value.strip())


@dataclasses.dataclass(frozen=True)
class AllowList:
    """
    snapshot of the allow-list file. never mutated; the store swaps in a new one
    """
    display_names: FrozenSet[str] = frozenset()
    unique_ids: FrozenSet[str] = frozenset()
    peer_ids: FrozenSet[str] = frozenset()
    generation: int = 0

    @property
    def total_count(self) -> int:
        return len(self.display_names) + len(self.unique_ids) + len(self.peer_ids)

    @property
    def is_empty(self) -> bool:
        # an empty list admits everyone
        return self.total_count == 0

    def with_entry(self, kind: str, value: str) -> "AllowList":
        _check_kind(kind)
        return dataclasses.replace(self, **{kind: getattr(self, kind) | _clean([value])})

    def without_entry(self, kind: str, value: str) -> "AllowList":
        _check_kind(kind)
        return dataclasses.replace(self, **{kind: getattr(self, kind) - {value}})

    @staticmethod
    def from_document(data: dict, generation: int = 0) -> "AllowList":
        return AllowList(
            display_names=_clean(data.get("display_names", [])),
            unique_ids=_clean(data.get("unique_ids", [])),
            peer_ids=_clean(data.get("peer_ids", [])),
            generation=generation,
        )

    def to_document(self) -> tomlkit.TOMLDocument:
        document = tomlkit.document()
        document.add(tomlkit.comment("Players allowed to stay connected while you host."))
        document.add(tomlkit.comment("A player matching any one list is admitted. Leave all three empty to admit everyone."))
        for kind in ALLOW_LIST_KINDS:
            entries = tomlkit.array()
            for value in sorted(getattr(self, kind)):
                entries.append(value)
            document.add(kind, entries.multiline(len(entries) > 0))
        return document


def _check_kind(kind: str):
    if kind not in ALLOW_LIST_KINDS:
        raise ValueError(f"Unknown allow-list kind {kind!r}, expected one of {ALLOW_LIST_KINDS}")


class AllowListStore:

    def __init__(self, location: Path):
        self.location = Path(location)
        self._current = AllowList()
        self._generation = 0
        self.schema = Schema({
            Optional('display_names'): [str],
            Optional('unique_ids'): [str],
            Optional('peer_ids'): [str],
        })

    @property
    def current(self) -> AllowList:
        return self._current

    def _swap(self, data: dict) -> AllowList:
        self._generation += 1
        allow_list = AllowList.from_document(data, generation=self._generation)
        # single reference assignment; readers see the old or the new snapshot
        self._current = allow_list
        return allow_list

    async def _read(self) -> dict:
        try:
            async with aiofiles.open(self.location, 'r') as allow_list_file:
                file_data = await allow_list_file.read()
            data = tomlkit.parse(file_data).unwrap()
            self.schema(data)
            return data
        except FileNotFoundError:
            raise
        except (tomlkit.exceptions.ParseError, UnicodeDecodeError) as e:
            raise AllowListLoadError(f"Allow-list in {self.location} is invalid") from e
        except voluptuous.error.MultipleInvalid as e:
            raise AllowListLoadError(f"Allow-list in {self.location} does not match expected format ({e.path})") from e
        except IOError as e:
            raise AllowListLoadError(f"Could not open file {self.location}") from e

    async def load(self) -> AllowList:
        """
        initial load. a missing file is created empty; a broken one yields an empty list
        """
        try:
            data = await self._read()
        except FileNotFoundError:
            allow_list = self._swap({})
            await self.save(allow_list)
            logging.info(f"Created empty allow-list at {self.location}")
            return allow_list
        except AllowListLoadError as e:
            logging.exception(e)
            logging.error(f"Could not load allow-list, admitting everyone until it is fixed")
            return self._swap({})

        allow_list = self._swap(data)
        logging.debug(f"Loaded allow-list with {allow_list.total_count} entries")
        return allow_list

    async def reload(self) -> AllowList:
        """
        reload after a change on disk. on any failure the previous snapshot stays
        """
        try:
            data = await self._read()
        except FileNotFoundError:
            logging.warning(f"Allow-list {self.location} disappeared, keeping the previous entries")
            return self._current
        except AllowListLoadError as e:
            logging.exception(e)
            logging.error(f"Could not reload allow-list, keeping the previous entries")
            return self._current

        allow_list = self._swap(data)
        logging.info(f"Reloaded allow-list with {allow_list.total_count} entries")
        return allow_list

    async def save(self, allow_list: AllowList) -> bool:
        try:
            async with aiofiles.open(self.location, 'w') as allow_list_file:
                await allow_list_file.write(tomlkit.dumps(allow_list.to_document()))
        except IOError as e:
            logging.exception(e)
            logging.error(f"Could not save allow-list to {self.location}")
            return False
        logging.debug("Allow-list saved to disk.")
        return True

    async def add(self, kind: str, value: str) -> AllowList:
        updated = self._current.with_entry(kind, value)
        return await self._replace(updated)

    async def remove(self, kind: str, value: str) -> AllowList:
        updated = self._current.without_entry(kind, value)
        return await self._replace(updated)

    async def _replace(self, updated: AllowList) -> AllowList:
        allow_list = self._swap({kind: getattr(updated, kind) for kind in ALLOW_LIST_KINDS})
        await self.save(allow_list)
        return allow_list

    def watch(self, on_change: Callable[[AllowList], None],
              poll_interval: float = 0.5, settle_delay: float = 0.1) -> "AllowListWatcher":
        return AllowListWatcher(self, on_change, poll_interval, settle_delay)


class AllowListWatcher:
    """
    runs its own event loop on a background thread, performs the initial load
    there, then polls the file and reloads it whenever it changes.
    """

    def __init__(self, store: AllowListStore, on_change: Callable[[AllowList], None],
                 poll_interval: float, settle_delay: float):
        self._store = store
        self._on_change = on_change
        self._poll_interval = poll_interval
        self._settle_delay = settle_delay
        self._loop: _Optional[asyncio.AbstractEventLoop] = None
        self._thread: _Optional[threading.Thread] = None
        self._task: _Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> AllowList:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, name="AllowListWatcher", daemon=True)
        self._thread.start()
        logging.debug(f"Watching {self._store.location} for changes")
        allow_list = self.run(self._store.load())
        self.run(self._begin_watching())
        return allow_list

    def run(self, coro):
        """Run a coroutine on the watcher loop and wait for its result."""
        if self._loop is None:
            raise RuntimeError("Watcher not started")
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    async def _begin_watching(self):
        # baseline taken before start() returns so no later write is missed
        signature = await self._signature()
        self._task = asyncio.get_running_loop().create_task(self._watch(signature))

    async def _signature(self) -> _Optional[Tuple[int, int]]:
        try:
            stat = await aiofiles.os.stat(self._store.location)
        except FileNotFoundError:
            return None
        except OSError as e:
            logging.warning(f"Could not stat {self._store.location}: {e}")
            return None
        return stat.st_mtime_ns, stat.st_size

    async def _watch(self, signature: _Optional[Tuple[int, int]]):
        while True:
            await asyncio.sleep(self._poll_interval)
            current = await self._signature()
            if current == signature:
                continue
            # let the writer finish before reading
            await asyncio.sleep(self._settle_delay)
            signature = await self._signature()
            previous = self._store.current
            allow_list = await self._store.reload()
            if allow_list is previous:
                continue
            try:
                self._on_change(allow_list)
            except Exception as e:
                logging.exception(e)
                logging.error("Allow-list change handler failed")

    async def _cancel(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def close(self):
        if self._loop is None:
            return
        self.run(self._cancel())
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()
        self._loop = None
        self._thread = None
        logging.debug(f"Stopped watching {self._store.location}")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
