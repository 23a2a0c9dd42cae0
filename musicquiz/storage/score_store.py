"""
Score persistence for the music quiz.

Plain key-value storage of the current and high score. Update rules live
in ScoreTracker; stores only read and write values.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import yaml

from musicquiz.utils.errors import ConfigurationError, ScoreStoreError

CURRENT_SCORE_KEY = "current_score"
HIGH_SCORE_KEY = "high_score"


@runtime_checkable
class ScoreStore(Protocol):
    """Protocol for process-scoped score persistence."""

    def get_current_score(self) -> int:
        ...

    def set_current_score(self, value: int) -> None:
        ...

    def get_high_score(self) -> int:
        ...

    def set_high_score(self, value: int) -> None:
        ...


class InMemoryScoreStore:
    """Score store that lives for the lifetime of the process."""

    def __init__(self, current: int = 0, high: int = 0):
        self._values: Dict[str, int] = {
            CURRENT_SCORE_KEY: current,
            HIGH_SCORE_KEY: high,
        }

    def get_current_score(self) -> int:
        return self._values[CURRENT_SCORE_KEY]

    def set_current_score(self, value: int) -> None:
        self._values[CURRENT_SCORE_KEY] = value

    def get_high_score(self) -> int:
        return self._values[HIGH_SCORE_KEY]

    def set_high_score(self, value: int) -> None:
        self._values[HIGH_SCORE_KEY] = value


class YamlScoreStore:
    """
    Score store persisted to a small YAML file.

    Values are read once on construction and written through on every
    set, so a crash loses nothing that was already reported to the user.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self.logger = logging.getLogger("scores.store")
        self._values = self._load()

    def _load(self) -> Dict[str, int]:
        values = {CURRENT_SCORE_KEY: 0, HIGH_SCORE_KEY: 0}
        if not self.path.exists():
            return values

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ScoreStoreError(
                f"Failed to read scores from {self.path}: {e}", operation="load"
            )

        for key in values:
            raw = data.get(key, 0) if isinstance(data, dict) else 0
            if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
                self.logger.warning(f"Ignoring invalid '{key}' value: {raw!r}")
                continue
            values[key] = raw
        return values

    def _write(self, key: str, value: int) -> None:
        with self._lock:
            values = dict(self._values)
            values[key] = value
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "w", encoding="utf-8") as f:
                    yaml.safe_dump(values, f, default_flow_style=False)
            except OSError as e:
                raise ScoreStoreError(
                    f"Failed to write scores to {self.path}: {e}",
                    operation="write",
                    key=key,
                )
            # Memory only follows a successful write
            self._values = values

    def get_current_score(self) -> int:
        return self._values[CURRENT_SCORE_KEY]

    def set_current_score(self, value: int) -> None:
        self._write(CURRENT_SCORE_KEY, value)

    def get_high_score(self) -> int:
        return self._values[HIGH_SCORE_KEY]

    def set_high_score(self, value: int) -> None:
        self._write(HIGH_SCORE_KEY, value)


def create_score_store(config: Optional[Dict[str, Any]] = None) -> ScoreStore:
    """
    Factory function to create a score store from the 'scores' section.

    Raises:
        ConfigurationError: If the backend name is unknown
    """
    if config is None:
        config = {}

    backend = config.get("backend", "memory")
    if backend == "memory":
        return InMemoryScoreStore()
    if backend == "yaml":
        return YamlScoreStore(Path(config.get("path") or "scores.yaml"))
    raise ConfigurationError(
        f"Unknown score store backend: {backend}", config_key="scores.backend"
    )
