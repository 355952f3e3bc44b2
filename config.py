import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _get_env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    return val.strip() in {"1", "true", "True", "yes", "YES", "y"}


def _get_env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    try:
        return int(val)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


@dataclass
class Config:
    store_path: Path
    log_level: str
    debug: bool
    timezone_name: Optional[str]
    sample_interval_ms: int
    auto_complete_stretch: bool


def load_config(env_path: Optional[Path] = None) -> Config:
    if env_path is None:
        env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    store_path = Path(os.getenv("STRETCHBOT_STORE_PATH", "data/stretchbot.json"))
    debug = _get_env_bool("DEBUG", False)
    log_level = os.getenv("LOG_LEVEL", "DEBUG" if debug else "INFO").upper()
    timezone_name = os.getenv("TIMEZONE") or None
    sample_interval_ms = _get_env_int("SAMPLE_INTERVAL_MS", 1000)
    if sample_interval_ms <= 0:
        raise ValueError("SAMPLE_INTERVAL_MS must be positive")
    auto_complete_stretch = _get_env_bool("AUTO_COMPLETE_STRETCH", True)

    return Config(
        store_path=store_path,
        log_level=log_level,
        debug=debug,
        timezone_name=timezone_name,
        sample_interval_ms=sample_interval_ms,
        auto_complete_stretch=auto_complete_stretch,
    )


def setup_logging(log_level: str = "INFO") -> None:
    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)

    log_path = logs_dir / "stretchbot.log"
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        handlers=[file_handler, console_handler],
    )
