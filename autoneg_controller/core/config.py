"""Configuration management for Autoneg Controller."""

import argparse
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigError
from .models import LabelSelector


DEFAULT_SERVICE_NAME = "serverless-autoneg-controller"
DEFAULT_REGION = "europe-west1"
DEFAULT_PORT = "8080"

# Level names follow the controller's historical -verbosity values.
LOG_LEVELS: Dict[str, int] = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def parse_log_level(value: str) -> int:
    """Translate a verbosity name into a stdlib logging level."""
    level = LOG_LEVELS.get((value or "").strip().lower())
    if level is None:
        raise ConfigError(
            f"invalid logging level: not a valid level: {value!r} "
            f"(expected one of {', '.join(LOG_LEVELS)})"
        )
    return level


class Config(BaseModel):
    """Configuration settings for the autoneg controller."""

    model_config = ConfigDict(frozen=True)

    listen_address: str = Field(description="Address where HTTP requests would be served")
    log_level: str = Field(default="info", description="Normalized verbosity name")
    project_id: Optional[str] = Field(
        default=None,
        description="Project in which the services are deployed (autodetected when None)"
    )
    region: str = Field(default=DEFAULT_REGION, description="Region whose services are listed")
    label_selector: str = Field(default="", description="Label selector applied to services")
    service_name: str = Field(default=DEFAULT_SERVICE_NAME, description="Service tag for structured logs")
    service_version: Optional[str] = Field(default=None, description="Revision tag for structured logs")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        try:
            parse_log_level(value)
        except ConfigError as e:
            raise ValueError(str(e)) from e
        return value.strip().lower()

    @property
    def logging_level(self) -> int:
        return LOG_LEVELS[self.log_level]

    def with_project(self, project_id: str) -> "Config":
        """Return a copy of this config bound to a resolved project."""
        return self.model_copy(update={"project_id": project_id})

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for logging."""
        return {
            'listen_address': self.listen_address,
            'log_level': self.log_level,
            'project_id': self.project_id or '(autodetect)',
            'region': self.region,
            'label_selector': self.label_selector or '(all services)',
            'service_name': self.service_name,
            'service_version': self.service_version or '(unset)',
        }


class _FlagParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting on bad input."""

    def error(self, message: str):
        raise ConfigError(message)


def build_parser(environ: Mapping[str, str]) -> argparse.ArgumentParser:
    """Build the flag parser, taking defaults from the environment."""
    port = environ.get("PORT")
    default_addr = f":{port}" if port else f":{DEFAULT_PORT}"

    parser = _FlagParser(
        prog="serverless-autoneg-controller",
        description="Reconcile Cloud Run services with serverless NEG load balancer backends",
        allow_abbrev=False,
    )
    parser.add_argument("-verbosity", "--verbosity", dest="verbosity", default="info",
                        help="the logging level (e.g. debug)")
    parser.add_argument("-http-addr", "--http-addr", dest="http_addr", default=default_addr,
                        help="address where to listen to http requests (e.g. :8080)")
    parser.add_argument("-project", "--project", dest="project", default="",
                        help="project in which the service is deployed")
    parser.add_argument("-region", "--region", dest="region",
                        default=environ.get("AUTONEG_REGION") or DEFAULT_REGION,
                        help="region whose Cloud Run services are listed")
    parser.add_argument("-label-selector", "--label-selector", dest="label_selector",
                        default=environ.get("AUTONEG_LABEL_SELECTOR", ""),
                        help="label selector services must match (e.g. autoneg=true,env!=dev)")
    parser.add_argument("args", nargs="*", help=argparse.SUPPRESS)
    return parser


def parse_config(argv: Optional[List[str]] = None,
                 environ: Optional[Mapping[str, str]] = None) -> Config:
    """Parse flags and environment into an immutable Config.

    Raises ConfigError on an unknown level, a malformed label selector,
    unknown flags or any positional argument.
    """
    if environ is None:
        environ = os.environ

    parser = build_parser(environ)
    args = parser.parse_args(argv)

    if args.args:
        raise ConfigError(f"positional arguments not accepted: {args.args}")

    parse_log_level(args.verbosity)

    try:
        LabelSelector.parse(args.label_selector)
    except ValueError as e:
        raise ConfigError(f"invalid label selector: {e}") from e

    return Config(
        listen_address=args.http_addr,
        log_level=args.verbosity.strip().lower(),
        project_id=args.project.strip() or None,
        region=args.region,
        label_selector=args.label_selector,
        service_name=environ.get("K_SERVICE") or DEFAULT_SERVICE_NAME,
        service_version=environ.get("K_REVISION") or None,
    )


def load_environment(env_file: Path = Path(".env")) -> bool:
    """Load environment variables from a .env file if it exists."""
    if env_file.exists():
        return load_dotenv(env_file)
    return False
