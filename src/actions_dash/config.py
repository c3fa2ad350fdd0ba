"""Configuration persistence: load and save ``UserConfig``."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from actions_dash.models import CONFIG_APP_NAME, DEFAULT_RUNS_PER_PAGE, MAX_PER_PAGE
from actions_dash.polling import DEFAULT_BASE_INTERVAL, DEFAULT_MAX_INTERVAL
from actions_dash.retry import DEFAULT_ATTEMPTS
from actions_dash.services.github_client import GITHUB_API_URL
from actions_dash.state import DEFAULT_FLASH_SECONDS, DEFAULT_REF

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# _dict_to_config() guarantees valid output for any input:
#
#   Field               Rule                           Handler
#   ──────────────────  ─────────────────────────────  ─────────────────
#   poll_base_interval  MIN_INTERVAL ≤ x               _coerce_float
#   poll_max_interval   poll_base_interval ≤ x         _dict_to_config
#   fetch_attempts      1 ≤ x ≤ MAX_FETCH_ATTEMPTS     _coerce_int
#   runs_per_page       1 ≤ x ≤ MAX_PER_PAGE           _coerce_int
#   scalar fields       type-checked via _safe_get()   _dict_to_config
#
CONFIG_FILENAME = "config.json"
MIN_INTERVAL = 0.5  # seconds
MAX_FETCH_ATTEMPTS = 10


@dataclass(slots=True)
class UserConfig:
    """User settings persisted between sessions."""

    poll_base_interval: float = DEFAULT_BASE_INTERVAL
    poll_max_interval: float = DEFAULT_MAX_INTERVAL
    fetch_attempts: int = DEFAULT_ATTEMPTS
    runs_per_page: int = DEFAULT_RUNS_PER_PAGE
    default_ref: str = DEFAULT_REF
    flash_seconds: float = DEFAULT_FLASH_SECONDS
    api_base_url: str = GITHUB_API_URL
    log_fullscreen: bool = False
    version: int = 1


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Uses platformdirs for cross-platform config directory:
    - Linux: ~/.config/actions-dash/config.json
    - macOS: ~/Library/Application Support/actions-dash/config.json
    - Windows: %APPDATA%/actions-dash/config.json
    """
    return Path(user_config_dir(CONFIG_APP_NAME)) / CONFIG_FILENAME


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    return {
        "version": config.version,
        "poll_base_interval": config.poll_base_interval,
        "poll_max_interval": config.poll_max_interval,
        "fetch_attempts": config.fetch_attempts,
        "runs_per_page": config.runs_per_page,
        "default_ref": config.default_ref,
        "flash_seconds": config.flash_seconds,
        "api_base_url": config.api_base_url,
        "log_fullscreen": config.log_fullscreen,
    }


def _safe_get(data: dict, key: str, default: Any, expected_type: type | tuple[type, ...]) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if isinstance(value, bool) and expected_type is not bool:
        return default
    if not isinstance(value, expected_type):
        return default
    return value


def _coerce_int(data: dict, key: str, default: int, low: int, high: int) -> int:
    return max(low, min(_safe_get(data, key, default, int), high))


def _coerce_float(data: dict, key: str, default: float, low: float) -> float:
    return max(low, float(_safe_get(data, key, default, (int, float))))


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    if not isinstance(data, dict):
        raise TypeError(f"config root must be an object, got {type(data).__name__}")
    base = _coerce_float(data, "poll_base_interval", DEFAULT_BASE_INTERVAL, MIN_INTERVAL)
    maximum = _coerce_float(data, "poll_max_interval", DEFAULT_MAX_INTERVAL, base)
    default_ref = _safe_get(data, "default_ref", DEFAULT_REF, str).strip() or DEFAULT_REF
    api_base_url = _safe_get(data, "api_base_url", GITHUB_API_URL, str).strip() or GITHUB_API_URL
    return UserConfig(
        poll_base_interval=base,
        poll_max_interval=maximum,
        fetch_attempts=_coerce_int(
            data, "fetch_attempts", DEFAULT_ATTEMPTS, 1, MAX_FETCH_ATTEMPTS
        ),
        runs_per_page=_coerce_int(data, "runs_per_page", DEFAULT_RUNS_PER_PAGE, 1, MAX_PER_PAGE),
        default_ref=default_ref,
        flash_seconds=_coerce_float(data, "flash_seconds", DEFAULT_FLASH_SECONDS, 0.0),
        api_base_url=api_base_url,
        log_fullscreen=_safe_get(data, "log_fullscreen", False, bool),
        version=_safe_get(data, "version", 1, int),
    )


def load_config(path: Path | None = None) -> UserConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return UserConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        return _dict_to_config(data)
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
        return UserConfig()
    except (KeyError, TypeError) as e:
        logger.warning("Config file has invalid structure, using defaults: %s", e)
        return UserConfig()
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return UserConfig()


def save_config(config: UserConfig, path: Path | None = None) -> bool:
    """Save configuration to disk atomically (tempfile + ``os.replace``).

    Returns True on success, False on failure.
    """
    config_path = path or get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        json_str = json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)
        fd, tmp_path = tempfile.mkstemp(dir=config_path.parent, suffix=".tmp", prefix=".config-")
        closed = False
        try:
            os.write(fd, json_str.encode("utf-8"))
            os.close(fd)
            closed = True
            os.replace(tmp_path, config_path)
        except BaseException:
            if not closed:
                os.close(fd)
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "CONFIG_FILENAME",
    "UserConfig",
    "get_config_path",
    "load_config",
    "save_config",
]
