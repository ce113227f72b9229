"""
Watch file loader.
Reads the TOML watch file, validates it and produces ConfigSnapshots keyed
by the file's modification time.
"""

import tomllib
from pathlib import Path

from pydantic import ValidationError

from order_watch.config import Settings, settings
from order_watch.infrastructure.observability.logging import get_logger
from order_watch.models.api.watch_file import WatchFile
from order_watch.models.domain.config_domain import ConfigError, ConfigSnapshot, Subscriber, Target
from order_watch.models.domain.destination import Carrier, Destination
from order_watch.models.domain.phone import PhoneKey

logger = get_logger(__name__)


class ConfigLoader:
    """Loads ConfigSnapshots from the watch file."""

    def __init__(self, path: Path | str | None = None, app_settings: Settings = settings):
        self._path_override = Path(path) if path is not None else None
        self._settings = app_settings

    @property
    def path(self) -> Path:
        if self._path_override is not None:
            return self._path_override
        try:
            return self._settings.watch_file_path()
        except RuntimeError as e:
            raise ConfigError(f"Unable to get home directory: {e}") from e

    def fingerprint(self) -> int:
        """
        Current modification fingerprint of the watch file.

        Raises:
            ConfigError: If the file cannot be stat'ed
        """
        path = self.path
        try:
            return path.stat().st_mtime_ns
        except OSError as e:
            raise ConfigError(f"Unable to read watch file: {e}", path=str(path)) from e

    def load(self) -> ConfigSnapshot:
        """
        Load a fresh snapshot.

        Raises:
            ConfigError: If the file is missing, unreadable or invalid
            PhoneNumberError: If a subscriber phone number is malformed
        """
        path = self.path
        fingerprint = self.fingerprint()

        try:
            document = tomllib.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Unable to read watch file: {e}", path=str(path)) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in watch file: {e}", path=str(path)) from e

        try:
            watch_file = WatchFile.model_validate(document)
        except ValidationError as e:
            raise ConfigError(f"Invalid watch file: {e}", path=str(path)) from e

        subscribers = []
        for user in watch_file.users:
            phone = PhoneKey.parse(user.phone_number)
            try:
                carrier = Carrier.parse(user.carrier)
            except ConfigError as e:
                raise ConfigError(f"{e} (user {user.name})", path=str(path)) from e
            subscribers.append(
                Subscriber(
                    name=user.name,
                    phone=phone,
                    destination=Destination(number=phone.undashed, carrier=carrier),
                )
            )

        snapshot = ConfigSnapshot(
            poll_interval_seconds=watch_file.check_interval / 1000,
            consecutive_errors_limit=watch_file.consecutive_errors_limit,
            from_identity=watch_file.from_addr,
            subscribers=tuple(subscribers),
            targets=tuple(Target(name=t.name, url=t.url) for t in watch_file.check_addresses),
            fingerprint=fingerprint,
            source=str(path),
        )

        logger.info("Watch file loaded", path=str(path), **snapshot.summary())
        return snapshot

    def reload_if_changed(self, current: ConfigSnapshot) -> ConfigSnapshot | None:
        """
        Reload only when the fingerprint moved.

        Returns:
            ConfigSnapshot | None: New snapshot, or None when unchanged
        """
        if not current.is_stale(self.fingerprint()):
            return None
        logger.info("Watch file changed, reloading", path=str(self.path))
        return self.load()
