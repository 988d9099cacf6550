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

import dataclasses
import logging
from pathlib import Path

from voluptuous import Schema, Optional, All, Any, In, Length, Range, Coerce
import voluptuous.error
import aiofiles
import tomlkit
import tomlkit.exceptions

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
PAUSE_METHODS = ("direct", "chatbox")
SLEEP_ANNOUNCE_MODES = ("off", "first", "all")
MOVE_BUILDING_PERMISSIONS = ("off", "owned", "on")


class ConfigurationLoadError(Exception): pass


@dataclasses.dataclass(frozen=True)
class HelperSettings:
    """
    immutable view of config.toml; a reload produces a new instance
    """
    mod_enabled: bool = True
    log_level: str = "INFO"

    invite_code_enabled: bool = True
    show_hud_notifications: bool = True
    show_manual_copy_message: bool = True

    auto_pause_enabled: bool = True
    pause_method: str = "chatbox"
    enable_manual_toggle: bool = True
    pause_toggle_key: str = "P"

    auto_configure_enabled: bool = True
    sleep_announce_mode: str = "all"
    move_building_permission: str = "owned"
    unban_all_enabled: bool = False

    allow_list_enabled: bool = False
    show_player_join_info: bool = True
    allow_list_file: str = "allow_list.toml"
    allow_list_poll_interval: float = 0.5
    allow_list_settle_delay: float = 0.1

    @property
    def use_direct_pause(self) -> bool:
        return self.pause_method == "direct"

    @staticmethod
    def from_document(document: dict) -> "HelperSettings":
        defaults = HelperSettings()
        helper = document.get("helper", {})
        invite = document.get("invite", {})
        pause = document.get("pause", {})
        configure = document.get("configure", {})
        allow_list = document.get("allow_list", {})
        return HelperSettings(
            mod_enabled=helper.get("mod_enabled", defaults.mod_enabled),
            log_level=helper.get("log_level", defaults.log_level),
            invite_code_enabled=invite.get("enabled", defaults.invite_code_enabled),
            show_hud_notifications=invite.get("show_hud_notifications", defaults.show_hud_notifications),
            show_manual_copy_message=invite.get("show_manual_copy_message", defaults.show_manual_copy_message),
            auto_pause_enabled=pause.get("enabled", defaults.auto_pause_enabled),
            pause_method=pause.get("method", defaults.pause_method),
            enable_manual_toggle=pause.get("enable_manual_toggle", defaults.enable_manual_toggle),
            pause_toggle_key=pause.get("toggle_key", defaults.pause_toggle_key),
            auto_configure_enabled=configure.get("enabled", defaults.auto_configure_enabled),
            sleep_announce_mode=configure.get("sleep_announce_mode", defaults.sleep_announce_mode),
            move_building_permission=configure.get("move_building_permission", defaults.move_building_permission),
            unban_all_enabled=configure.get("unban_all", defaults.unban_all_enabled),
            allow_list_enabled=allow_list.get("enabled", defaults.allow_list_enabled),
            show_player_join_info=allow_list.get("show_player_join_info", defaults.show_player_join_info),
            allow_list_file=allow_list.get("file", defaults.allow_list_file),
            allow_list_poll_interval=float(allow_list.get("poll_interval", defaults.allow_list_poll_interval)),
            allow_list_settle_delay=float(allow_list.get("settle_delay", defaults.allow_list_settle_delay)),
        )


def default_document() -> tomlkit.TOMLDocument:
    settings = HelperSettings()
    document = tomlkit.document()
    document.add(tomlkit.comment("MultiplayerHelper settings"))

    helper = tomlkit.table()
    helper.add("mod_enabled", settings.mod_enabled)
    helper.add("log_level", settings.log_level)
    document.add("helper", helper)

    invite = tomlkit.table()
    invite.add("enabled", settings.invite_code_enabled)
    invite.add("show_hud_notifications", settings.show_hud_notifications)
    invite.add("show_manual_copy_message", settings.show_manual_copy_message)
    document.add("invite", invite)

    pause = tomlkit.table()
    pause.add("enabled", settings.auto_pause_enabled)
    pause.add("method", settings.pause_method)
    pause["method"].comment("direct | chatbox")
    pause.add("enable_manual_toggle", settings.enable_manual_toggle)
    pause.add("toggle_key", settings.pause_toggle_key)
    document.add("pause", pause)

    configure = tomlkit.table()
    configure.add("enabled", settings.auto_configure_enabled)
    configure.add("sleep_announce_mode", settings.sleep_announce_mode)
    configure["sleep_announce_mode"].comment("off | first | all")
    configure.add("move_building_permission", settings.move_building_permission)
    configure["move_building_permission"].comment("off | owned | on")
    configure.add("unban_all", settings.unban_all_enabled)
    document.add("configure", configure)

    allow_list = tomlkit.table()
    allow_list.add("enabled", settings.allow_list_enabled)
    allow_list.add("show_player_join_info", settings.show_player_join_info)
    allow_list.add("file", settings.allow_list_file)
    allow_list.add("poll_interval", settings.allow_list_poll_interval)
    allow_list.add("settle_delay", settings.allow_list_settle_delay)
    document.add("allow_list", allow_list)

    return document


class Config:
    config: tomlkit.TOMLDocument
    config_opened: bool = False

    def __init__(self, config_location: Path):
        self.config_location = Path(config_location)

        self.config_schema = Schema({
            Optional('helper'): {
                Optional('mod_enabled'): bool,
                Optional('log_level'): All(str, In(LOG_LEVELS)),
            },
            Optional('invite'): {
                Optional('enabled'): bool,
                Optional('show_hud_notifications'): bool,
                Optional('show_manual_copy_message'): bool,
            },
            Optional('pause'): {
                Optional('enabled'): bool,
                Optional('method'): All(str, In(PAUSE_METHODS)),
                Optional('enable_manual_toggle'): bool,
                Optional('toggle_key'): All(str, Length(min=1)),
            },
            Optional('configure'): {
                Optional('enabled'): bool,
                Optional('sleep_announce_mode'): All(str, In(SLEEP_ANNOUNCE_MODES)),
                Optional('move_building_permission'): All(str, In(MOVE_BUILDING_PERMISSIONS)),
                Optional('unban_all'): bool,
            },
            Optional('allow_list'): {
                Optional('enabled'): bool,
                Optional('show_player_join_info'): bool,
                Optional('file'): All(str, Length(min=1)),
                Optional('poll_interval'): All(Any(int, float), Coerce(float), Range(min=0.05)),
                Optional('settle_delay'): All(Any(int, float), Coerce(float), Range(min=0)),
            },
        })

    @property
    def settings(self) -> HelperSettings:
        return HelperSettings.from_document(self.config.unwrap())

    async def initialize(self):
        try:
            async with aiofiles.open(self.config_location, 'r') as config_file:
                file_data = await config_file.read()
                self.config = tomlkit.parse(file_data)
                logging.debug("Loaded Configuration without toml format error")
                logging.debug("Validating against Schema.")
                self.config_schema(self.config.unwrap())
                self.config_opened = True
                logging.debug("Validated against Schema.")
        except FileNotFoundError:
            logging.warning(f"Could not find {self.config_location}. Writing defaults to {self.config_location}")
            self.config = default_document()
            self.config_opened = True
            try:
                await self.close()
            except IOError as e:
                logging.exception(e)
                logging.warning(f"Could not write default configuration to {self.config_location}")
                self.config_opened = False
                raise ConfigurationLoadError() from e
        except tomlkit.exceptions.ParseError as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.config_location} is invalid")
            raise ConfigurationLoadError() from e
        except voluptuous.error.MultipleInvalid as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.config_location} does not match expected format")
            logging.warning(f"Issue configuration item: {e.path}")
            raise ConfigurationLoadError() from e
        except IOError as e:
            logging.exception(e)
            logging.warning(f"Could not open file {self.config_location}")
            raise ConfigurationLoadError() from e

        logging.info(f"Configuration loaded.")

    async def close(self):
        if self.config_opened is True:
            async with aiofiles.open(self.config_location, 'w') as config_file:
                await config_file.write(tomlkit.dumps(self.config))
            logging.debug("Config file saved to disk.")
