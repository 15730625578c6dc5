"""
Configuration management for contact-relay
"""
from .settings import ConfigurationError, Settings

__all__ = ["ConfigurationError", "Settings"]
