"""
dtnreport.config - Report configuration

Provides YAML-based report settings parsing.
"""

from .settings import ReportInstanceConfig, ReportSettings, load_report_settings

__all__ = ['ReportInstanceConfig', 'ReportSettings', 'load_report_settings']
