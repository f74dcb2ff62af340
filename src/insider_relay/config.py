# src/insider_relay/config.py
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Mapping, Optional, Tuple
import logging

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_SEND_ATTEMPTS,
    DEFAULT_RETRY_AFTER_SECONDS,
    DEFAULT_SOURCE_URL,
    DEFAULT_USER_AGENT,
    BIG_TRADE_MENTION,
    BIG_TRADE_THRESHOLD,
    MIN_RETRY_WAIT_SECONDS,
    SINK_MAX_EMBEDS_PER_REQUEST,
)
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

Config = Dict[str, Any]


class FilterConfig(BaseModel):
    """Thresholds applied to every record of one run."""
    model_config = ConfigDict(frozen=True)

    trade_types: Tuple[str, ...] = ("P", "S")
    max_days_filed: float = 3
    max_days_trade: float = 365
    min_price: float = 5
    min_value_k: float = 0

    @field_validator("trade_types", mode="before")
    @classmethod
    def _split_trade_types(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        codes = tuple(str(code).strip().upper() for code in v if str(code).strip())
        if not codes:
            raise ValueError("trade_types must name at least one trade type code")
        return codes


class SinkConfig(BaseModel):
    """Webhook target and delivery pacing."""
    model_config = ConfigDict(frozen=True)

    webhook_url: str
    embed_mode: bool = True
    batch_size: int = Field(SINK_MAX_EMBEDS_PER_REQUEST, ge=1, le=SINK_MAX_EMBEDS_PER_REQUEST)
    rate_limit_ms: int = Field(750, ge=0)
    max_per_run: int = Field(200, ge=0)
    max_attempts: int = Field(DEFAULT_MAX_SEND_ATTEMPTS, ge=1)
    default_retry_after: float = Field(DEFAULT_RETRY_AFTER_SECONDS, ge=0)
    min_retry_wait: float = Field(MIN_RETRY_WAIT_SECONDS, ge=0)
    request_timeout: float = 15
    big_trade_threshold: float = BIG_TRADE_THRESHOLD
    big_trade_mention: str = BIG_TRADE_MENTION

    @field_validator("webhook_url")
    @classmethod
    def _require_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("webhook_url is required (set DISCORD_WEBHOOK_URL)")
        return v.strip()

    @field_validator("embed_mode", mode="before")
    @classmethod
    def _flag(cls, v):
        if isinstance(v, str):
            return v.strip() == "1" or v.strip().lower() in ("true", "yes", "on")
        return v


class SourceConfig(BaseModel):
    """Where the screener markup comes from."""
    model_config = ConfigDict(frozen=True)

    url: str = DEFAULT_SOURCE_URL
    base_url: str = DEFAULT_BASE_URL
    local_html: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 20


class LedgerConfig(BaseModel):
    """Dedup ledger backend and location."""
    model_config = ConfigDict(frozen=True)

    backend: str = "file"
    path: str = "openinsider.sent.log"

    @field_validator("backend")
    @classmethod
    def _known_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("file", "sqlite"):
            raise ValueError(f"unknown ledger backend '{v}' (expected 'file' or 'sqlite')")
        return v


class RelaySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: SourceConfig = Field(default_factory=SourceConfig)
    filters: FilterConfig = Field(default_factory=FilterConfig)
    sink: SinkConfig
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    logging: Dict[str, Any] = Field(default_factory=dict)


# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "OPENINSIDER_URL": ("source", "url"),
    "LOCAL_HTML": ("source", "local_html"),
    "USER_AGENT": ("source", "user_agent"),
    "DISCORD_WEBHOOK_URL": ("sink", "webhook_url"),
    "EMBED_MODE": ("sink", "embed_mode"),
    "EMBEDS_PER_REQ": ("sink", "batch_size"),
    "RATE_LIMIT_MS": ("sink", "rate_limit_ms"),
    "MAX_PER_RUN": ("sink", "max_per_run"),
    "TYPES": ("filters", "trade_types"),
    "MAX_DAYS_FILED": ("filters", "max_days_filed"),
    "MAX_DAYS_TRADE": ("filters", "max_days_trade"),
    "MIN_PRICE": ("filters", "min_price"),
    "MIN_VALUE_K": ("filters", "min_value_k"),
    "SENT_LOG_FILE": ("ledger", "path"),
    "LEDGER_BACKEND": ("ledger", "backend"),
    "LOG_LEVEL": ("logging", "level"),
}


def deep_merge_dicts(base: Dict, update: Dict) -> Dict:
    """Recursively merge two dictionaries. Update values override base values."""
    merged = base.copy()
    for key, value in update.items():
        if isinstance(value, dict) and key in merged and isinstance(merged[key], dict):
            merged[key] = deep_merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged

def _read_yaml(path: Path) -> Config:
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing YAML configuration from {path}: {e}")
    except IOError as e:
        raise ConfigurationError(f"Error reading configuration file {path}: {e}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} is not a valid YAML dictionary.")
    return data

def load_config(config_path: Optional[str] = None, env: Optional[str] = None) -> Config:
    """
    Loads configuration from YAML files.
    It loads a default config, then merges an optional environment-specific config.
    An explicitly requested file must exist; the default one is optional.
    """
    if config_path:
        primary_config_file = Path(config_path)
        if not primary_config_file.is_absolute():
            primary_config_file = PROJECT_ROOT / primary_config_file
        if not primary_config_file.exists():
            raise ConfigurationError(f"Primary configuration file not found: {primary_config_file}")
    else:
        primary_config_file = PROJECT_ROOT / "config/default.yaml"

    config_data: Config = {}
    if primary_config_file.exists():
        config_data = _read_yaml(primary_config_file)
        logger.debug(f"Loaded configuration from: {primary_config_file}")
    else:
        logger.debug(f"No configuration file at {primary_config_file}; using built-in defaults.")

    if env and env != "default":
        env_config_file = primary_config_file.parent / f"{env}.yaml"
        if env_config_file.exists():
            config_data = deep_merge_dicts(config_data, _read_yaml(env_config_file))
            logger.info(f"Loaded and merged environment configuration from: {env_config_file}")
        else:
            logger.debug(f"Environment configuration file for '{env}' not found at {env_config_file}.")

    return config_data

def apply_env_overrides(config_data: Config, environ: Optional[Mapping[str, str]] = None) -> Config:
    """Overlays the recognised environment variables on top of the file configuration."""
    environ = os.environ if environ is None else environ
    overrides: Config = {}
    for var_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(var_name)
        if value is None or value.strip() == "":
            continue
        overrides.setdefault(section, {})[key] = value.strip()
    return deep_merge_dicts(config_data, overrides)

def build_settings(config_data: Config) -> RelaySettings:
    """Validates a merged configuration dictionary into immutable settings."""
    data = dict(config_data)
    data.setdefault("sink", {})
    data["sink"] = {"webhook_url": "", **(data["sink"] or {})}

    ledger = dict(data.get("ledger") or {})
    if ledger.get("path"):
        ledger_path = Path(ledger["path"])
        if not ledger_path.is_absolute():
            ledger["path"] = str(Path.cwd() / ledger_path)
        data["ledger"] = ledger

    try:
        return RelaySettings(**data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e

def load_settings(config_path: Optional[str] = None, env: Optional[str] = None,
                  environ: Optional[Mapping[str, str]] = None) -> RelaySettings:
    """Files, then .env and process environment, validated into RelaySettings."""
    if environ is None:
        load_dotenv(Path.cwd() / ".env")
    config_data = apply_env_overrides(load_config(config_path, env), environ)
    settings = build_settings(config_data)
    logger.debug(f"Effective settings: {settings.model_dump(exclude={'sink': {'webhook_url'}})}")
    return settings
