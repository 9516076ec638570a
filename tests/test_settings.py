"""Local settings persistence."""

import json

from hakushi_chat.settings import DEFAULT_WS_URL, Settings, SettingsStore, new_room_id


def test_first_load_generates_and_persists_ids(tmp_path):
    store = SettingsStore(tmp_path / "nested" / "config.json")
    first = store.load()
    assert first.user_name == "User"
    assert len(first.room) == 8
    assert store.load().user_id == first.user_id
    assert store.load().room == first.room


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{broken")
    settings = SettingsStore(path).load()
    assert settings.ws_url == DEFAULT_WS_URL
    assert json.loads(path.read_text())["user_id"] == settings.user_id


def test_update_persists_changes(tmp_path):
    store = SettingsStore(tmp_path / "config.json")
    original = store.load()
    store.update(room="ffff0000", user_name="Dana")
    reloaded = store.load()
    assert (reloaded.room, reloaded.user_name) == ("ffff0000", "Dana")
    assert reloaded.user_id == original.user_id


def test_env_overrides_are_not_written_back(tmp_path, monkeypatch):
    store = SettingsStore(tmp_path / "config.json")
    store.save(Settings(user_id="u1", room="abcd1234"))
    monkeypatch.setenv("HAKUSHI_WS_URL", "ws://localhost:1999")
    monkeypatch.setenv("HAKUSHI_API_URL", "http://localhost:8787")
    settings = store.load()
    assert settings.ws_url == "ws://localhost:1999"
    assert settings.api_url == "http://localhost:8787"
    assert json.loads((tmp_path / "config.json").read_text())["ws_url"] == DEFAULT_WS_URL


def test_config_path_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("HAKUSHI_CONFIG", str(tmp_path / "alt.json"))
    assert SettingsStore().path == tmp_path / "alt.json"


def test_room_ids_are_short_hex():
    room = new_room_id()
    assert len(room) == 8
    int(room, 16)
