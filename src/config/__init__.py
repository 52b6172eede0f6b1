"""
E-Commerce Sales & Supply Chain Analytics
Configuration Module
"""
from .settings import ReportSettings, Settings, get_settings, resolve_report_settings

__all__ = ["ReportSettings", "Settings", "get_settings", "resolve_report_settings"]
