"""Configuration module."""

from .settings import ClientSettings, settings

__all__ = ['ClientSettings', 'settings']
