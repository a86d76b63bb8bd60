"""
CargoCore 3PL Operations Dashboard
Configuration Module
"""
from .settings import (
    AnalyticsSourceSettings,
    LLMSettings,
    MonitoringSettings,
    Settings,
    WarehouseSourceSettings,
    get_settings,
)

__all__ = [
    "AnalyticsSourceSettings",
    "LLMSettings",
    "MonitoringSettings",
    "Settings",
    "WarehouseSourceSettings",
    "get_settings",
]
