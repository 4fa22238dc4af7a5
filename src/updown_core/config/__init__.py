"""Configuration system."""

from updown_core.config.loader import load_config
from updown_core.config.schema import (
    AppConfig,
    EdgeConfig,
    ExitConfig,
    FilterConfig,
    MarketThresholds,
    MomentumConfig,
    MomentumFilterConfig,
    OrderbookFilterConfig,
    SignalConfig,
    SizingConfig,
    TimeFilterConfig,
    VolumeFilterConfig,
)

__all__ = [
    "AppConfig",
    "EdgeConfig",
    "ExitConfig",
    "FilterConfig",
    "MarketThresholds",
    "MomentumConfig",
    "MomentumFilterConfig",
    "OrderbookFilterConfig",
    "SignalConfig",
    "SizingConfig",
    "TimeFilterConfig",
    "VolumeFilterConfig",
    "load_config",
]
