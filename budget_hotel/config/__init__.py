"""
Configuration package: environment settings and logging setup.
"""

from budget_hotel.config.settings import get_settings, settings

__all__ = ['settings', 'get_settings']
