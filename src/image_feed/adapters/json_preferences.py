"""JSON file implementation of the preferences store."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from image_feed.services.storage import Preferences

_logger = logging.getLogger(__name__)


@dataclass
class JsonFilePreferences(Preferences):
    """Preferences kept in a single JSON object on disk."""

    path: Path
    _values: dict[str, object] | None = field(default=None, init=False, repr=False)

    def get(self, key: str) -> object | None:
        """Return a stored value."""
        return self._load().get(key)

    def set(self, key: str, value: object) -> None:
        """Store a value and write the file."""
        values = self._load()
        values[key] = value
        self._save(values)

    def remove(self, key: str) -> None:
        """Remove a key and write the file if it was present."""
        values = self._load()
        if key in values:
            del values[key]
            self._save(values)

    def _load(self) -> dict[str, object]:
        if self._values is not None:
            return self._values
        values: dict[str, object] = {}
        if self.path.exists():
            try:
                loaded = json.loads(self.path.read_text())
            except (OSError, ValueError):
                _logger.warning(
                    "Preferences file %s is unreadable, starting empty", self.path
                )
            else:
                if isinstance(loaded, dict):
                    values = loaded
        self._values = values
        return values

    def _save(self, values: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Readers see either the old file or the new one, never a partial write.
        staging = self.path.with_name(f"{self.path.name}.tmp")
        staging.write_text(json.dumps(values, indent=2))
        staging.replace(self.path)
