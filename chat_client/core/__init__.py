"""Core module - logging setup and log hygiene helpers."""

from .logging_config import setup_logging, mask_token, filter_sensitive_data, truncate_large_data

__all__ = ['setup_logging', 'mask_token', 'filter_sensitive_data', 'truncate_large_data']
