"""Configuration management for linkscan."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from .scanner.models import PollOptions

logger = logging.getLogger(__name__)

DEFAULT_PROXY_URL = "http://127.0.0.1:8000"
DEFAULT_PROVIDER_URL = "https://www.virustotal.com/api/v3"
DEFAULT_STATUS_PATH = "/api/analyses/{job_id}"


@dataclass
class Config:
    """Application configuration loaded from environment."""

    # Scan client
    proxy_url: str = DEFAULT_PROXY_URL
    status_path: str = DEFAULT_STATUS_PATH
    request_timeout: float = 30.0
    settle_delay: float = 3.0  # wait between submission and first status query
    poll: PollOptions = field(default_factory=PollOptions)

    # Proxy server
    proxy_host: str = "127.0.0.1"
    proxy_port: int = 8000
    virustotal_api_key: str = ""  # only read by the proxy
    virustotal_base_url: str = DEFAULT_PROVIDER_URL

    config_dir: Path = field(default_factory=lambda: Path("./config"))

    def __post_init__(self):
        self.config_dir = Path(self.config_dir)


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE_VALUES


def _yaml_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _load_poll_overrides(config_dir: Path) -> dict:
    """Load poll option overrides from config/polling.yaml (optional)."""
    path = Path(config_dir or ".") / "polling.yaml"
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except Exception as exc:
        logger.warning("Failed to parse polling.yaml: %s", exc)
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring polling.yaml: expected a mapping")
        return {}

    raw = data.get("polling", data)
    if not isinstance(raw, dict):
        return {}

    coercers = {
        "max_attempts": int,
        "initial_interval_ms": float,
        "backoff_factor": float,
        "max_interval_ms": float,
        "retry_on_transport_error": _yaml_bool,
    }
    overrides: dict = {}
    for key, coerce in coercers.items():
        if key not in raw:
            continue
        try:
            overrides[key] = coerce(raw[key])
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid polling.yaml value for %s: %r", key, raw[key])
    return overrides


def load_config(env_file: Optional[str] = None) -> Config:
    """Load configuration from environment variables (and an optional .env file)."""
    if env_file:
        load_dotenv(env_file, override=True)
    else:
        load_dotenv()

    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))

    poll = PollOptions(
        max_attempts=int(os.getenv("LINKSCAN_MAX_ATTEMPTS", "20")),
        initial_interval_ms=float(os.getenv("LINKSCAN_INITIAL_INTERVAL_MS", "2000")),
        backoff_factor=float(os.getenv("LINKSCAN_BACKOFF_FACTOR", "1.5")),
        max_interval_ms=float(os.getenv("LINKSCAN_MAX_INTERVAL_MS", "8000")),
        retry_on_transport_error=_env_bool("LINKSCAN_RETRY_TRANSPORT_ERRORS"),
    )
    for key, value in _load_poll_overrides(config_dir).items():
        setattr(poll, key, value)

    return Config(
        proxy_url=os.getenv("LINKSCAN_PROXY_URL", DEFAULT_PROXY_URL),
        status_path=os.getenv("LINKSCAN_STATUS_PATH", DEFAULT_STATUS_PATH),
        request_timeout=float(os.getenv("LINKSCAN_REQUEST_TIMEOUT", "30")),
        settle_delay=float(os.getenv("LINKSCAN_SETTLE_DELAY", "3")),
        poll=poll,
        proxy_host=os.getenv("PROXY_HOST", "127.0.0.1"),
        proxy_port=int(os.getenv("PROXY_PORT", "8000")),
        virustotal_api_key=os.getenv("VIRUSTOTAL_API_KEY", "") or os.getenv("VT_API_KEY", ""),
        virustotal_base_url=os.getenv("VIRUSTOTAL_BASE_URL", DEFAULT_PROVIDER_URL),
        config_dir=config_dir,
    )


def validate_config(config: Config, proxy: bool = False) -> list[str]:
    """Validate configuration and return list of error messages."""
    errors: list[str] = list(config.poll.validate())

    if config.request_timeout <= 0:
        errors.append("LINKSCAN_REQUEST_TIMEOUT must be positive")
    if config.settle_delay < 0:
        errors.append("LINKSCAN_SETTLE_DELAY must not be negative")
    if "{job_id}" not in config.status_path:
        errors.append("LINKSCAN_STATUS_PATH must contain {job_id}")

    if proxy and not (config.virustotal_api_key or "").strip():
        errors.append("VIRUSTOTAL_API_KEY (or VT_API_KEY) is required to run the proxy")

    return errors
