import asyncio

import pytest
import tomlkit

from config import Config, ConfigurationLoadError, HelperSettings


def test_missing_config_is_written_with_defaults(tmp_path) -> None:
    path = tmp_path / "config.toml"
    config = Config(path)

    asyncio.run(config.initialize())

    assert config.settings == HelperSettings()
    written = tomlkit.parse(path.read_text()).unwrap()
    assert written["pause"]["method"] == "chatbox"
    assert written["allow_list"]["enabled"] is False

    reread = Config(path)
    asyncio.run(reread.initialize())
    assert reread.settings == HelperSettings()


def test_partial_config_falls_back_to_defaults(tmp_path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[allow_list]\nenabled = true\npoll_interval = 2\n\n[pause]\nmethod = \"direct\"\n")
    config = Config(path)

    asyncio.run(config.initialize())
    settings = config.settings

    assert settings.allow_list_enabled is True
    assert settings.allow_list_poll_interval == 2.0
    assert settings.use_direct_pause is True
    assert settings.auto_configure_enabled is True
    assert settings.sleep_announce_mode == "all"


@pytest.mark.parametrize("content", [
    "[pause]\nmethod = \"teleport\"\n",
    "[helper]\nmod_enabled = \"yes\"\n",
    "[configure]\nmove_building_permission = \"everyone\"\n",
    "[allow_list]\npoll_interval = 0\n",
    "[unknown]\nvalue = 1\n",
])
def test_invalid_values_are_rejected(tmp_path, content) -> None:
    path = tmp_path / "config.toml"
    path.write_text(content)

    with pytest.raises(ConfigurationLoadError):
        asyncio.run(Config(path).initialize())


def test_unparseable_config_is_rejected(tmp_path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[pause\nmethod = ")

    with pytest.raises(ConfigurationLoadError):
        asyncio.run(Config(path).initialize())


def test_from_document_maps_every_section() -> None:
    settings = HelperSettings.from_document({
        "helper": {"mod_enabled": False, "log_level": "DEBUG"},
        "invite": {"enabled": False, "show_manual_copy_message": False},
        "pause": {"enabled": False, "toggle_key": "F5"},
        "configure": {"sleep_announce_mode": "first", "unban_all": True},
        "allow_list": {"file": "friends.toml", "settle_delay": 0},
    })

    assert settings.mod_enabled is False
    assert settings.log_level == "DEBUG"
    assert settings.invite_code_enabled is False
    assert settings.show_manual_copy_message is False
    assert settings.show_hud_notifications is True
    assert settings.auto_pause_enabled is False
    assert settings.pause_toggle_key == "F5"
    assert settings.sleep_announce_mode == "first"
    assert settings.unban_all_enabled is True
    assert settings.allow_list_file == "friends.toml"
    assert settings.allow_list_settle_delay == 0.0


def test_unwritable_default_config_is_a_load_error(tmp_path) -> None:
    config = Config(tmp_path / "not_created_yet" / "config.toml")

    with pytest.raises(ConfigurationLoadError):
        asyncio.run(config.initialize())
