"""Tasbeeh tally counter package."""

from __future__ import annotations

from .config import BaseConfig
from .context import AppContext, create_app_context
from .domain.identity import Identity

__all__ = ["AppContext", "BaseConfig", "Identity", "create_app_context"]
