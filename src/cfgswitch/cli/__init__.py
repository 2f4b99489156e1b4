"""
Command-line interface for the cfgswitch package.

This module provides the main CLI entry point for the profile switcher.
"""

from .main import main, main_cli

__all__ = [
    "main",
    "main_cli",
]
