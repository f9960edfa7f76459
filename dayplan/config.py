from pathlib import Path

import yaml

DAYPLAN_DIR = Path.home() / ".dayplan"
DB_PATH = DAYPLAN_DIR / "dayplan.db"
CONFIG_PATH = DAYPLAN_DIR / "config.yaml"
BACKUP_DIR = DAYPLAN_DIR / "backups"
LOG_DIR = DAYPLAN_DIR / "logs"

DEFAULT_TIMER_MINUTES = 25
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_LOG_LEVEL = "INFO"


class Config:
    """Single-instance config manager. Load once, cache in memory."""

    _instance: "Config | None" = None
    _data: dict[str, object]

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = {}
            cls._instance._load()
        return cls._instance

    def _load(self) -> None:
        """Load config from disk."""
        if not CONFIG_PATH.exists():
            self._data = {}
            return
        try:
            with CONFIG_PATH.open() as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            loaded = None
        self._data = loaded if isinstance(loaded, dict) else {}

    def _save(self) -> None:
        """Persist config to disk."""
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with CONFIG_PATH.open("w") as f:
            yaml.dump(self._data, f, default_flow_style=False, allow_unicode=True)

    def reload(self) -> None:
        self._load()

    def get(self, key: str, default: object = None) -> object:
        """Get config value."""
        return self._data.get(key, default)

    def set(self, key: str, value: object) -> None:
        """Set config value and persist."""
        self._data[key] = value
        self._save()


_config = Config()


def _positive_number(key: str, default: float) -> float:
    val = _config.get(key)
    if isinstance(val, bool) or not isinstance(val, (int, float)) or val <= 0:
        return default
    return val


def get_default_timer_minutes() -> int:
    """Timer length used when a task enables its timer without a duration."""
    return int(_positive_number("default_timer_minutes", DEFAULT_TIMER_MINUTES))


def get_poll_interval() -> float:
    """Seconds between timer observations in `dayplan timer watch`."""
    return float(_positive_number("poll_interval_seconds", DEFAULT_POLL_INTERVAL))


def get_log_level() -> str:
    val = _config.get("log_level")
    return str(val).strip().upper() if val else DEFAULT_LOG_LEVEL


def set_default_timer_minutes(minutes: int) -> None:
    _config.set("default_timer_minutes", int(minutes))
