"""Configuration package for the DOF FX service."""

from .settings import AppSettings, get_settings

__all__ = ["AppSettings", "get_settings"]
