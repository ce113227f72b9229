import os

import pytest

from order_watch.config import Settings
from order_watch.models.domain.config_domain import ConfigError
from order_watch.models.domain.destination import Carrier
from order_watch.models.domain.phone import PhoneKey, PhoneNumberError
from order_watch.services.config_loader import ConfigLoader

WATCH_FILE = """
check_interval = 30000
consecutive_errors_limit = 5
from_addr = "alerts@example.com"
check_addresses = [
    "https://tracker.example.com/orders?phone=",
    { name = "north", url = "https://north.example.com/track/" },
]

[[users]]
name = "Robert"
carrier = "Verizon"
phone_number = "555.123.4567"

[[users]]
name = "Ana"
carrier = "AT&T"
phone_number = "5559876543"
"""


@pytest.fixture
def watch_file(tmp_path):
    path = tmp_path / "watch.toml"
    path.write_text(WATCH_FILE, encoding="utf-8")
    return path


def _bump_mtime(path, delta_ns: int = 1_000_000_000) -> None:
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + delta_ns))


def test_load_builds_snapshot(watch_file):
    snapshot = ConfigLoader(watch_file).load()

    assert snapshot.poll_interval_seconds == 30.0
    assert snapshot.consecutive_errors_limit == 5
    assert snapshot.from_identity == "alerts@example.com"
    assert snapshot.fingerprint == watch_file.stat().st_mtime_ns
    assert snapshot.source == str(watch_file)

    robert, ana = snapshot.subscribers
    assert robert.name == "Robert"
    assert robert.phone == PhoneKey("555", "123", "4567")
    assert robert.destination.address == "5551234567@vtext.com"
    assert ana.destination.carrier is Carrier.ATT

    bare, named = snapshot.targets
    assert bare.name == bare.url == "https://tracker.example.com/orders?phone="
    assert named.name == "north"
    assert named.url == "https://north.example.com/track/"


def test_path_comes_from_settings(watch_file):
    loader = ConfigLoader(app_settings=Settings(ORDER_WATCH_CONFIG=str(watch_file)))

    assert loader.path == watch_file
    assert loader.load().consecutive_errors_limit == 5


def test_missing_file_is_config_error(tmp_path):
    with pytest.raises(ConfigError) as exc_info:
        ConfigLoader(tmp_path / "missing.toml").load()

    assert exc_info.value.path.endswith("missing.toml")


def test_invalid_toml_is_config_error(tmp_path):
    path = tmp_path / "watch.toml"
    path.write_text("check_interval = = 5", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        ConfigLoader(path).load()


def test_schema_violation_is_config_error(tmp_path):
    path = tmp_path / "watch.toml"
    path.write_text('check_interval = 1000\nfrom_addr = "a@b.c"\n', encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid watch file"):
        ConfigLoader(path).load()


def test_unknown_carrier_is_config_error(tmp_path):
    path = tmp_path / "watch.toml"
    path.write_text(WATCH_FILE.replace('"AT&T"', '"Carrier Pigeon"'), encoding="utf-8")

    with pytest.raises(ConfigError, match="Unsupported carrier"):
        ConfigLoader(path).load()


def test_malformed_phone_number_is_not_swallowed(tmp_path):
    path = tmp_path / "watch.toml"
    path.write_text(WATCH_FILE.replace('"5559876543"', '"555-98"'), encoding="utf-8")

    with pytest.raises(PhoneNumberError):
        ConfigLoader(path).load()


def test_reload_skips_unchanged_file(watch_file):
    loader = ConfigLoader(watch_file)
    snapshot = loader.load()

    assert loader.reload_if_changed(snapshot) is None


def test_reload_after_touch_without_edits(watch_file):
    loader = ConfigLoader(watch_file)
    snapshot = loader.load()
    _bump_mtime(watch_file)

    fresh = loader.reload_if_changed(snapshot)

    assert fresh is not None
    assert fresh.fingerprint != snapshot.fingerprint
    assert fresh != snapshot
    assert fresh.subscribers == snapshot.subscribers


def test_reload_picks_up_edits(watch_file):
    loader = ConfigLoader(watch_file)
    snapshot = loader.load()
    watch_file.write_text(WATCH_FILE.replace("30000", "5000"), encoding="utf-8")
    _bump_mtime(watch_file)

    fresh = loader.reload_if_changed(snapshot)

    assert fresh.poll_interval_seconds == 5.0


def test_reload_of_deleted_file_is_config_error(watch_file):
    loader = ConfigLoader(watch_file)
    snapshot = loader.load()
    watch_file.unlink()

    with pytest.raises(ConfigError):
        loader.reload_if_changed(snapshot)
