"""
Configuration module for the roadmap backend.

Provides centralized configuration for push signing keys, the hosted
backend's admin credentials and rate limiting.
"""

from backend.src.config.settings import AppSettings, get_settings

__all__ = [
    "AppSettings",
    "get_settings",
]
