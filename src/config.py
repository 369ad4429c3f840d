import os
import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv

log = logging.getLogger("timescaleguard.config")

# Project root is one level up from src/
PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"


def load_config(config_path: str = None) -> dict:
    """Load configuration from YAML file with .env overrides."""
    load_dotenv(PROJECT_ROOT / ".env")

    yaml_path = Path(config_path) if config_path else CONFIG_DIR / "default.yaml"
    if not yaml_path.exists():
        log.warning("Config file not found: %s, using defaults", yaml_path)
        config = {}
    else:
        with open(yaml_path) as f:
            config = yaml.safe_load(f) or {}

    # Environment variable overrides
    guard = config.setdefault("guard", {}) or {}
    config["guard"] = guard
    guard["warning_cooldown"] = float(
        os.environ.get("TIMESCALE_WARNING_COOLDOWN", guard.get("warning_cooldown", 0.0))
    )

    logging_cfg = config.setdefault("logging", {}) or {}
    config["logging"] = logging_cfg
    logging_cfg["level"] = os.environ.get("LOG_LEVEL", logging_cfg.get("level", "INFO"))

    log.info(
        "Config loaded, warning cooldown %.1fs, log level %s",
        guard["warning_cooldown"],
        logging_cfg["level"],
    )
    return config
