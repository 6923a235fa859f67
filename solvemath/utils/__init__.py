"""Utility helpers for solvemath."""

from .config_loader import AppConfig, ConfigError, load_app_config, load_prompts_registry
from .exporters import export_latex, export_markdown, export_pdf, export_solution
from .logger import configure_logging, get_logger

__all__ = [
    "AppConfig",
    "ConfigError",
    "load_app_config",
    "load_prompts_registry",
    "export_latex",
    "export_markdown",
    "export_pdf",
    "export_solution",
    "get_logger",
    "configure_logging",
]
