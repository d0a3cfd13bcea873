from pathlib import Path
import os
import sys
import configparser
from typing import Any

CONFIG_ENV_VAR = "FINANCE_APP_CONFIG"
CONFIG_NAME = "finance.ini"
MEMORY_DB = ":memory:"


def _resolve_config_file() -> Path:
    """FINANCE_APP_CONFIG wins; otherwise finance.ini beside the app."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    if getattr(sys, "frozen", False):
        base = Path(sys.executable).resolve().parent
    else:
        base = Path(__file__).resolve().parent
        if not (base / CONFIG_NAME).exists():
            base = base.parent
    return base / CONFIG_NAME


CONFIG_FILE = _resolve_config_file()

SETTINGS_DEFAULTS: dict[str, Any] = {
    "export_dir": "exports",
    "log_level": "INFO",
    "foreign_keys": 1,
}

_SETTINGS_INT_KEYS = {"foreign_keys"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _load_cfg() -> configparser.ConfigParser:
    cfg = configparser.ConfigParser()
    cfg.read(CONFIG_FILE, encoding="utf-8")
    return cfg


def _save_cfg(cfg: configparser.ConfigParser) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        cfg.write(f)


def _section(cfg: configparser.ConfigParser, name: str) -> tuple[configparser.SectionProxy, bool]:
    """Return the section, creating it if needed, and whether it was created."""
    if cfg.has_section(name):
        return cfg[name], False
    cfg.add_section(name)
    return cfg[name], True


def load_last_db() -> Path | None:
    """The remembered database file, if it still exists."""
    stored = _load_cfg().get("app", "db_path", fallback="")
    if not stored:
        return None
    path = Path(stored).expanduser()
    return path if path.is_file() else None


def save_last_db(path: Path | str | None) -> None:
    cfg = _load_cfg()
    app, _ = _section(cfg, "app")
    if path:
        app["db_path"] = str(Path(path).expanduser().resolve())
    else:
        cfg.remove_option("app", "db_path")
    _save_cfg(cfg)


def _coerce(key: str, raw_value: str) -> Any:
    if key in _SETTINGS_INT_KEYS:
        return int(float(raw_value))
    if key == "log_level":
        level = raw_value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(raw_value)
        return level
    return raw_value


def load_settings() -> dict[str, Any]:
    """Typed [settings]; missing or invalid keys are reset to their defaults."""
    cfg = _load_cfg()
    section, updated = _section(cfg, "settings")
    settings: dict[str, Any] = {}
    for key, default in SETTINGS_DEFAULTS.items():
        try:
            settings[key] = _coerce(key, section[key])
        except (KeyError, TypeError, ValueError):
            settings[key] = default
            section[key] = str(default)
            updated = True
    if updated:
        _save_cfg(cfg)
    return settings


# Last used database; the CLI falls back to it when --db is omitted
DB_PATH: Path | None = load_last_db()
