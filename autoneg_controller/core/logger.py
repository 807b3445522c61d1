"""Logging setup for Autoneg Controller.

On a terminal records are rendered with rich. Anywhere else (Cloud Run,
containers, pipes) each record is written as one JSON object that Cloud
Logging understands, tagged with the running service's name.
"""

import logging
import sys
from typing import Any, Dict, IO, Optional, Union

import structlog
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import DEFAULT_SERVICE_NAME, LOG_LEVELS, parse_log_level


ERROR_REPORTING_TYPE = "type.googleapis.com/google.devtools.clouderrorreporting.v1beta1.ReportedErrorEvent"

ERROR_SEVERITIES = ("ERROR", "CRITICAL")


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return dict(getattr(record, "fields", None) or {})


def add_record_fields(logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Copy the structured fields attached by AutonegLogger into the event."""
    record = event_dict.get("_record")
    if record is not None:
        event_dict["fields"] = _record_fields(record)
    return event_dict


class CloudLoggingEnvelope:
    """Reshape an event dict into a Cloud Logging structured entry."""

    def __init__(self, service_name: str, version: Optional[str] = None):
        self.service_context = {"service": service_name}
        if version:
            self.service_context["version"] = version

    def __call__(self, logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        severity = str(event_dict.pop("level", method_name)).upper()
        message = str(event_dict.pop("event", ""))
        exception = event_dict.pop("exception", None)
        if exception:
            message = f"{message}\n{exception}"

        pathname = event_dict.pop("pathname", None)
        lineno = event_dict.pop("lineno", None)
        func_name = event_dict.pop("func_name", None)

        entry: Dict[str, Any] = {
            "severity": severity,
            "message": message,
            "timestamp": event_dict.pop("timestamp", None),
            "serviceContext": dict(self.service_context),
            "logging.googleapis.com/sourceLocation": {
                "file": pathname,
                "line": lineno,
                "function": func_name,
            },
        }

        context: Dict[str, Any] = {}
        fields = event_dict.pop("fields", None)
        if fields:
            context["data"] = fields
        if severity in ERROR_SEVERITIES:
            entry["@type"] = ERROR_REPORTING_TYPE
            context["reportLocation"] = {
                "filePath": pathname,
                "lineNumber": lineno,
                "functionName": func_name,
            }
        if context:
            entry["context"] = context

        return entry


class StackdriverFormatter(structlog.stdlib.ProcessorFormatter):
    """Format stdlib records as Cloud Logging structured JSON lines."""

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME, version: Optional[str] = None):
        super().__init__(
            foreign_pre_chain=[
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
                structlog.processors.CallsiteParameterAdder([
                    structlog.processors.CallsiteParameter.PATHNAME,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]),
                add_record_fields,
                structlog.processors.format_exc_info,
            ],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                CloudLoggingEnvelope(service_name, version),
                structlog.processors.JSONRenderer(),
            ],
        )
        self.service_name = service_name
        self.version = version


class FieldsFormatter(logging.Formatter):
    """Append structured fields as key=value pairs for console output."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = _record_fields(record)
        if fields:
            message += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        return message


class AutonegLogger:
    """Logger handle passed explicitly to every component.

    ``with_fields`` returns a child handle sharing the same underlying
    logger, so context such as the region travels with each record.
    """

    def __init__(self, logger: logging.Logger, console: Optional[Console] = None,
                 is_interactive: bool = False, fields: Optional[Dict[str, Any]] = None):
        self.logger = logger
        self.console = console
        self.is_interactive = is_interactive
        self.fields: Dict[str, Any] = dict(fields or {})

    def with_fields(self, **fields: Any) -> "AutonegLogger":
        """Return a child logger carrying additional structured fields."""
        merged = {**self.fields, **fields}
        return AutonegLogger(self.logger, self.console, self.is_interactive, merged)

    def _log(self, level: int, message: str, fields: Dict[str, Any], exc_info: bool = False):
        merged = {**self.fields, **fields}
        self.logger.log(level, message, extra={"fields": merged}, exc_info=exc_info, stacklevel=3)

    def debug(self, message: str, **fields: Any):
        self._log(logging.DEBUG, message, fields)

    def info(self, message: str, **fields: Any):
        self._log(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any):
        self._log(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any):
        self._log(logging.ERROR, message, fields)

    def critical(self, message: str, **fields: Any):
        self._log(logging.CRITICAL, message, fields)

    def exception(self, message: str, **fields: Any):
        """Log at error level with the active exception's traceback."""
        self._log(logging.ERROR, message, fields, exc_info=True)

    def is_enabled_for(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def startup_banner(self, config_dict: dict):
        """Display startup banner with configuration."""
        if not self.is_interactive or self.console is None:
            self.info("serverless autoneg controller starting", **config_dict)
            return

        banner = Panel.fit(
            "[bold blue]🚀 Serverless Autoneg Controller[/bold blue]\n"
            "[dim]Cloud Run services → serverless NEG backends[/dim]",
            border_style="blue"
        )
        self.console.print(banner)

        table = Table(title="🔧 Configuration", show_header=True, header_style="bold magenta")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")
        for key, value in config_dict.items():
            table.add_row(key, str(value))
        self.console.print(table)


def setup_logger(name: str = "autoneg_controller",
                 level: Union[str, int] = "info",
                 service_name: str = DEFAULT_SERVICE_NAME,
                 service_version: Optional[str] = None,
                 stream: Optional[IO[str]] = None) -> AutonegLogger:
    """Setup and return the controller logger.

    ``level`` is either a verbosity name (see ``LOG_LEVELS``) or a stdlib
    logging level. Raises ConfigError on an unknown name. ``service_version``
    (the Cloud Run revision) is reported next to the service name in JSON output.
    """
    if isinstance(level, str):
        level = parse_log_level(level)
    if stream is None:
        stream = sys.stdout

    isatty = getattr(stream, "isatty", None)
    is_interactive = bool(isatty and isatty())

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Clear existing handlers
    logger.handlers.clear()

    console = None
    if is_interactive:
        console = Console(file=stream)
        handler: logging.Handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True
        )
        handler.setFormatter(FieldsFormatter("%(message)s"))
    else:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StackdriverFormatter(service_name, service_version))

    logger.addHandler(handler)
    return AutonegLogger(logger, console=console, is_interactive=is_interactive)


__all__ = [
    "AutonegLogger",
    "FieldsFormatter",
    "LOG_LEVELS",
    "StackdriverFormatter",
    "setup_logger",
]
