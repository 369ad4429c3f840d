import logging
import sys
import os


def setup_logging(level: str = None) -> logging.Logger:
    """Configure the timescaleguard logger namespace."""
    log_level = level or os.environ.get("LOG_LEVEL", "INFO")
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    root = logging.getLogger("timescaleguard")
    root.setLevel(numeric_level)

    # Calling twice (e.g. from tests) must not stack handlers
    if not any(getattr(h, "_timescaleguard", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        handler._timescaleguard = True
        root.addHandler(handler)
    root.propagate = False

    return root
