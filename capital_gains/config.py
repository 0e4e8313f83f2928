"""
Tax settings loaded from YAML.

Only the ``taxes`` section is read:

    taxes:
      swing_exemption_limit: 20000.00
      swing_trade_rate_percent: 20

Missing keys fall back to the Brazilian individual-taxpayer defaults.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

import yaml

from capital_gains.errors import OperationError
from capital_gains.money import Money

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_EXEMPTION_LIMIT_CENTS = 2_000_000
DEFAULT_TAX_RATE_PERCENT = 20


@dataclass(frozen=True)
class TaxSettings:
    """
    Parameters of the capital gains rules.

    Attributes:
        exemption_threshold: Sale totals at or below this value are exempt
        tax_rate_percent: Flat rate applied to net taxable profit
    """
    exemption_threshold: Money = field(default_factory=lambda: Money(DEFAULT_EXEMPTION_LIMIT_CENTS))
    tax_rate_percent: int = DEFAULT_TAX_RATE_PERCENT

    def __post_init__(self):
        if self.exemption_threshold.amount < 0:
            raise ValueError("Exemption threshold must be non-negative")
        if isinstance(self.tax_rate_percent, bool) or not isinstance(self.tax_rate_percent, int):
            raise ValueError("Tax rate must be an integer percentage")
        if not 0 <= self.tax_rate_percent <= 100:
            raise ValueError("Tax rate must be between 0 and 100")

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "TaxSettings":
        """
        Build settings from a parsed configuration dictionary.

        Raises:
            ValueError: If a value is invalid
        """
        tax_config = (config or {}).get('taxes') or {}
        if not isinstance(tax_config, dict):
            raise ValueError("Configuration section 'taxes' must be a mapping")

        threshold_value = tax_config.get('swing_exemption_limit')
        if threshold_value is None:
            threshold = Money(DEFAULT_EXEMPTION_LIMIT_CENTS)
        else:
            try:
                threshold = Money.from_decimal(threshold_value)
            except OperationError:
                raise ValueError(f"Invalid swing_exemption_limit: {threshold_value!r}")

        rate = tax_config.get('swing_trade_rate_percent', DEFAULT_TAX_RATE_PERCENT)
        return cls(exemption_threshold=threshold, tax_rate_percent=rate)


def load_settings(config_path: Optional[str] = None) -> TaxSettings:
    """
    Load tax settings with error handling.

    Args:
        config_path: Path to a YAML configuration file, or None for defaults

    Returns:
        TaxSettings

    Raises:
        FileNotFoundError: If config file not found
        yaml.YAMLError: If config file is invalid
        ValueError: If a setting is invalid
    """
    if config_path is None:
        return TaxSettings()

    try:
        with open(config_path, 'r') as file:
            config = yaml.safe_load(file)

        if config is not None and not isinstance(config, dict):
            raise ValueError("Configuration root must be a mapping")

        settings = TaxSettings.from_dict(config)
        logger.info(f"Configuration loaded from {config_path} "
                    f"(swing exemption: {settings.exemption_threshold}, "
                    f"rate: {settings.tax_rate_percent}%)")
        return settings

    except FileNotFoundError:
        logger.error(f"Configuration file not found: {config_path}")
        raise
    except yaml.YAMLError as e:
        logger.error(f"Invalid YAML configuration: {str(e)}")
        raise
    except ValueError as e:
        logger.error(f"Invalid configuration in {config_path}: {str(e)}")
        raise
