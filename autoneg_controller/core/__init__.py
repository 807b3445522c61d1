"""Core functionality for Autoneg Controller."""

from .config import Config, parse_config
from .errors import AutonegError, ConfigError, EmptyProjectError, ProjectDetectionError, ServiceListError
from .logger import AutonegLogger, setup_logger
from .models import LabelSelector, ServiceSummary

__all__ = [
    "Config",
    "parse_config",
    "AutonegError",
    "ConfigError",
    "ProjectDetectionError",
    "EmptyProjectError",
    "ServiceListError",
    "AutonegLogger",
    "setup_logger",
    "LabelSelector",
    "ServiceSummary",
]
