"""
Configuration dataclasses and loading for the terminal attribution system.

Configuration comes from an optional JSON file and from environment
variables (a .env file is honoured through python-dotenv). Environment
values override file values.
"""

import json
import os
import sys
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .enums import LogLevel
from .exceptions import ConfigurationError
from .i18n import SUPPORTED_LANGUAGES


DEFAULT_CONFIG_PATH = Path.home() / ".terminal_attribution" / "config.json"

SUPPORTED_OUTPUT_FORMATS = ("json", "text", "both")


@dataclass
class RevenueConfig:
    """Subscription fee settings used by the revenue rollup."""

    per_device_monthly_fee: Decimal = Decimal("10")
    currency: str = "EUR"


@dataclass
class SupabaseConfig:
    """Connection settings for the hosted dashboard database."""

    url: Optional[str] = None
    api_key: Optional[str] = None
    customers_table: str = "customers"
    terminals_table: str = "products"
    page_size: int = 1000
    timeout: float = 15.0

    @property
    def configured(self) -> bool:
        return bool(self.url and self.api_key)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class SystemConfig:
    """Main configuration combining all sub-configurations."""

    revenue: RevenueConfig = field(default_factory=RevenueConfig)
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    language: str = "tr"  # 'tr' or 'en'


def parse_fee(value: object) -> Decimal:
    """
    Parse a non-negative per-device fee.

    Raises:
        ConfigurationError: If the value is not a finite, non-negative number
    """
    try:
        fee = Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(
            code="invalid_fee",
            message=f"Invalid per-device monthly fee: {value!r}",
            details={"value": repr(value)},
        )
    if not fee.is_finite() or fee < 0:
        raise ConfigurationError(
            code="invalid_fee",
            message=f"Per-device monthly fee must be a non-negative number: {value!r}",
            details={"value": repr(value)},
        )
    return fee


def validate_config(config: SystemConfig) -> None:
    """
    Check configuration values that dataclasses cannot enforce.

    Raises:
        ConfigurationError: On the first invalid value
    """
    if config.language not in SUPPORTED_LANGUAGES:
        raise ConfigurationError(
            code="invalid_language",
            message=f"Unsupported language: {config.language!r}",
            details={"supported": sorted(SUPPORTED_LANGUAGES)},
        )
    if config.logging.level not in {level.value for level in LogLevel}:
        raise ConfigurationError(
            code="invalid_log_level",
            message=f"Unsupported log level: {config.logging.level!r}",
        )
    if config.logging.output_format not in SUPPORTED_OUTPUT_FORMATS:
        raise ConfigurationError(
            code="invalid_output_format",
            message=f"Unsupported log output format: {config.logging.output_format!r}",
        )
    if config.supabase.page_size < 1:
        raise ConfigurationError(
            code="invalid_page_size",
            message="Supabase page size must be at least 1",
        )
    if config.supabase.url and not config.supabase.url.lower().startswith("https://"):
        raise ConfigurationError(
            code="insecure_url",
            message="Supabase URL must use HTTPS",
            details={"url": config.supabase.url},
        )


def _section(data: Mapping, name: str) -> Mapping:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(
            code="invalid_section",
            message=f"Config section '{name}' must be an object",
            details={"section": name, "type": type(section).__name__},
        )
    return section


def config_from_dict(data: Mapping) -> SystemConfig:
    """
    Build a SystemConfig from its JSON form.

    Missing sections and keys fall back to defaults.

    Raises:
        ConfigurationError: If a value is invalid
    """
    revenue_data = _section(data, "revenue")
    supabase_data = _section(data, "supabase")
    logging_data = _section(data, "logging")

    revenue = RevenueConfig(
        per_device_monthly_fee=parse_fee(
            revenue_data.get("per_device_monthly_fee", RevenueConfig.per_device_monthly_fee)
        ),
        currency=revenue_data.get("currency", RevenueConfig.currency),
    )

    supabase = SupabaseConfig(
        url=supabase_data.get("url"),
        api_key=supabase_data.get("api_key"),
        customers_table=supabase_data.get("customers_table", SupabaseConfig.customers_table),
        terminals_table=supabase_data.get("terminals_table", SupabaseConfig.terminals_table),
        page_size=int(supabase_data.get("page_size", SupabaseConfig.page_size)),
        timeout=float(supabase_data.get("timeout", SupabaseConfig.timeout)),
    )

    logging_config = LoggingConfig(
        level=logging_data.get("level", LoggingConfig.level),
        output_format=logging_data.get("output_format", LoggingConfig.output_format),
    )

    config = SystemConfig(
        revenue=revenue,
        supabase=supabase,
        logging=logging_config,
        language=data.get("language", SystemConfig.language),
    )
    validate_config(config)
    return config


def config_to_dict(config: SystemConfig) -> dict:
    """Serialize a SystemConfig. The Supabase API key is never written."""
    return {
        "revenue": {
            "per_device_monthly_fee": str(config.revenue.per_device_monthly_fee),
            "currency": config.revenue.currency,
        },
        "supabase": {
            "url": config.supabase.url,
            "customers_table": config.supabase.customers_table,
            "terminals_table": config.supabase.terminals_table,
            "page_size": config.supabase.page_size,
            "timeout": config.supabase.timeout,
        },
        "logging": {
            "level": config.logging.level,
            "output_format": config.logging.output_format,
        },
        "language": config.language,
    }


def load_config_from_file(config_path: Path) -> Optional[SystemConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        SystemConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            print(f"Error loading config: expected a JSON object in {config_path}", file=sys.stderr)
            return None
        return config_from_dict(data)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
    except ConfigurationError as e:
        print(f"Error loading config: {e.message}", file=sys.stderr)
        return None
    except FileNotFoundError:
        return None


def save_config_to_file(config: SystemConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    Returns:
        True if successful, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(config_to_dict(config), f, indent=2, ensure_ascii=False)
        return True
    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def apply_environment(
    config: SystemConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> SystemConfig:
    """
    Return a copy of config with environment overrides applied.

    Recognised variables: SUPABASE_URL, SUPABASE_KEY, ATTRIBUTION_LANGUAGE,
    ATTRIBUTION_LOG_LEVEL, PER_DEVICE_MONTHLY_FEE.

    Raises:
        ConfigurationError: If an override is invalid
    """
    env = os.environ if environ is None else environ

    supabase = replace(
        config.supabase,
        url=env.get("SUPABASE_URL") or config.supabase.url,
        api_key=env.get("SUPABASE_KEY") or config.supabase.api_key,
    )
    revenue = config.revenue
    if env.get("PER_DEVICE_MONTHLY_FEE"):
        revenue = replace(revenue, per_device_monthly_fee=parse_fee(env["PER_DEVICE_MONTHLY_FEE"]))
    logging_config = config.logging
    if env.get("ATTRIBUTION_LOG_LEVEL"):
        logging_config = replace(logging_config, level=env["ATTRIBUTION_LOG_LEVEL"].lower())

    updated = replace(
        config,
        revenue=revenue,
        supabase=supabase,
        logging=logging_config,
        language=env.get("ATTRIBUTION_LANGUAGE") or config.language,
    )
    validate_config(updated)
    return updated


def load_config(
    config_path: Optional[Path] = None,
    dotenv_path: Optional[Path] = None,
) -> Optional[SystemConfig]:
    """
    Load configuration from file (if any) and the environment.

    Args:
        config_path: JSON config file; defaults are used when it is absent
        dotenv_path: Optional .env file; python-dotenv's search is used otherwise

    Returns:
        SystemConfig, or None if the file exists but cannot be loaded

    Raises:
        ConfigurationError: If an environment override is invalid
    """
    load_dotenv(dotenv_path=dotenv_path)

    config = SystemConfig()
    if config_path is not None:
        if config_path.exists():
            loaded = load_config_from_file(config_path)
            if loaded is None:
                return None
            config = loaded

    return apply_environment(config)
