"""Tests for credentials.store module."""

import yaml

from credentials.models import PersistedConfig
from credentials.store import CredentialStore


class TestLoad:
    """Tests for reading stored settings."""

    def test_missing_file_gives_default(self, tmp_path):
        store = CredentialStore(tmp_path / "absent.yaml")

        config = store.load()

        assert config == PersistedConfig()
        assert store.last_connected_device is None

    def test_empty_file_gives_default(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("")

        assert CredentialStore(path).load() == PersistedConfig()

    def test_corrupt_yaml_gives_default(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("last_connected_device: [unclosed\n  device_pins: {")

        store = CredentialStore(path)

        assert store.load() == PersistedConfig()

    def test_wrong_shape_gives_default(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.safe_dump({"device_pins": ["0000", "1234"]}))

        assert CredentialStore(path).load() == PersistedConfig()

    def test_non_persistent_ignores_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.safe_dump({"last_connected_device": "AA"}))

        store = CredentialStore(path, persistent=False)

        assert store.load().last_connected_device is None

    def test_load_replaces_in_memory_state(self, tmp_path):
        store = CredentialStore(tmp_path / "absent.yaml")
        store.config.last_connected_device = "AA"

        store.load()

        assert store.last_connected_device is None


class TestSave:
    """Tests for writing stored settings."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / "settings.yaml"
        store = CredentialStore(path)
        store.record_pairing_secret("20:13:07:26:10:08", "1234")
        store.record_pairing_secret("98:D3:31:FB:2E:41", "0000")
        store.record_successful_device("20:13:07:26:10:08")

        reloaded = CredentialStore(path)
        reloaded.load()

        assert reloaded.last_connected_device == "20:13:07:26:10:08"
        assert reloaded.pin_for("20:13:07:26:10:08") == "1234"
        assert reloaded.pin_for("98:D3:31:FB:2E:41") == "0000"
        assert reloaded.pin_for("00:00:00:00:00:00") is None

    def test_file_is_plain_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        store = CredentialStore(path)
        store.record_successful_device("AA")

        data = yaml.safe_load(path.read_text())

        assert data == {"last_connected_device": "AA", "device_pins": {}}

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "settings.yaml"
        store = CredentialStore(path)

        assert store.save() is True
        assert path.exists()

    def test_non_persistent_writes_nothing(self, tmp_path):
        path = tmp_path / "settings.yaml"
        store = CredentialStore(path, persistent=False)

        assert store.record_successful_device("AA") is False
        assert not path.exists()
        # in-memory state still follows the session
        assert store.last_connected_device == "AA"

    def test_save_failure_is_reported_not_raised(self, tmp_path):
        # a directory in place of the settings file makes open() fail
        path = tmp_path / "settings.yaml"
        path.mkdir()
        store = CredentialStore(path)

        assert store.record_successful_device("AA") is False
        assert store.last_connected_device == "AA"

    def test_from_config(self, tmp_path):
        store = CredentialStore.from_config({
            "settings_file": str(tmp_path / "s.yaml"),
            "persistent_settings": False,
        })

        assert store.settings_file == tmp_path / "s.yaml"
        assert store.persistent is False
