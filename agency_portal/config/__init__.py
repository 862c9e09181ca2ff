from .loader import DEFAULT_CONFIG_PATH, ConfigError, load_config

__all__ = ["ConfigError", "DEFAULT_CONFIG_PATH", "load_config"]
