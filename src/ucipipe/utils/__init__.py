"""Shared utilities for ucipipe."""

from ucipipe.utils.config import EngineConfig, load_engine_config, save_config
from ucipipe.utils.logging import setup_logging

__all__ = ["EngineConfig", "load_engine_config", "save_config", "setup_logging"]
