from .loader import ConfigError, load_config, get_config, reload_config
from .schema import BroksumConfig, AnalysisConfig

__all__ = [
    "ConfigError",
    "load_config",
    "get_config",
    "reload_config",
    "BroksumConfig",
    "AnalysisConfig",
]
