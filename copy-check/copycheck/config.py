# copycheck/config.py
"""Handles loading and accessing the application configuration."""
import copy
import logging
import os
import threading
import time
import tomllib
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "openai": {
        "model": "gpt-4o-mini",
        "temperature": 0.3,
        "retry_temperature": 0.2,
        "timeout_seconds": 20.0,
        "json_mode": True,
    },
    "guardrails": {
        "rate_limit": "20/minute",
        "rate_limit_strategy": "refill",
        "reading_level": "Grade 7",
        "tone": {"confident": 0.8, "compassionate": 0.7, "evidenceLed": 1.0},
        "fallback_status": 422,
        "audit_log": True,
    },
    "server": {
        "reload_config_seconds": 10,
        "cors_allow_origins": ["*"],
    },
}

CONFIG_PATH = os.environ.get("CONFIG_PATH", "config.toml")
_config_lock = threading.Lock()
_config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
_reloader_started = False

def _merge(user_cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Merges a user config over the defaults, one section deep."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for k, v in user_cfg.items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k].update(v)
        else:
            merged[k] = v
    return merged

def _load_config():
    """Loads configuration from a TOML file and merges it with defaults."""
    global _config
    try:
        if os.path.exists(CONFIG_PATH):
            with open(CONFIG_PATH, "rb") as f:
                user_cfg = tomllib.load(f)
            merged = _merge(user_cfg)
        else:
            merged = copy.deepcopy(DEFAULT_CONFIG)
        with _config_lock:
            _config = merged
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("failed to load %s: %s", CONFIG_PATH, e)

def get_cfg() -> Dict[str, Any]:
    """Thread-safe access to the global configuration."""
    with _config_lock:
        return _config

def start_config_reloader():
    """Starts a background thread to periodically reload the configuration."""
    global _reloader_started
    if _reloader_started:
        return
    _reloader_started = True

    def loop():
        while True:
            _load_config()
            time.sleep(get_cfg()["server"]["reload_config_seconds"])
    t = threading.Thread(target=loop, daemon=True)
    t.start()

# Initial load
_load_config()
