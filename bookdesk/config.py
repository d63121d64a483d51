"""
Centralized configuration with environment variable overrides.

Pricing defaults, payment rules and booking-desk behavior are
configurable here. Nothing is hardcoded in engine or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("credit_card", "crypto", "cash")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag from an env var (true/false, yes/no, 1/0)."""
    raw = os.getenv(env_var, default)
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class PricingConfig:
    """Tier selection and display settings for the pricing resolver."""

    default_tier: str = os.getenv("DEFAULT_PRICING_TIER", "Retail")
    unknown_type_label: str = os.getenv("UNKNOWN_TYPE_LABEL", "Unknown Type")
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "$")


@dataclass(frozen=True)
class PaymentConfig:
    """Payment state machine defaults."""

    deposit_rate: float = _safe_float("DEPOSIT_RATE", "0.20")
    default_method: str = os.getenv("DEFAULT_PAYMENT_METHOD", "credit_card")


@dataclass(frozen=True)
class BookingConfig:
    """Booking desk and capacity behavior."""

    allow_overbooking: bool = _safe_bool("ALLOW_OVERBOOKING", "false")
    confirmation_fallback_code: str = os.getenv("CONFIRMATION_FALLBACK_CODE", "EXP")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    pricing: PricingConfig = field(default_factory=PricingConfig)
    payment: PaymentConfig = field(default_factory=PaymentConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "Tour Booking Desk")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 < config.payment.deposit_rate <= 1.0:
        raise ValueError(
            f"DEPOSIT_RATE must be in (0.0, 1.0], got {config.payment.deposit_rate}"
        )
    if config.payment.default_method not in PAYMENT_METHODS:
        raise ValueError(
            f"DEFAULT_PAYMENT_METHOD must be one of {list(PAYMENT_METHODS)}, "
            f"got {config.payment.default_method!r}"
        )
    if not config.pricing.default_tier.strip():
        raise ValueError("DEFAULT_PRICING_TIER must not be empty")
    if not config.booking.confirmation_fallback_code.strip():
        raise ValueError("CONFIRMATION_FALLBACK_CODE must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
