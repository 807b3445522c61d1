"""
Serverless Autoneg Controller

Bootstraps the controller: resolves configuration and the Google Cloud
project, then lists the Cloud Run services whose backends are managed.
"""

import os
from typing import List, Optional

from google.cloud import run_v2

from .core.config import DEFAULT_SERVICE_NAME, Config, load_environment, parse_config
from .core.errors import AutonegError, ConfigError, ProjectDetectionError
from .core.logger import AutonegLogger, setup_logger
from .core.models import ServiceSummary
from .providers.gcp.cloud_run import get_cloud_run_services
from .providers.gcp.project import determine_project_id


class AutonegController:
    """Serverless autoneg controller bootstrap."""

    def __init__(self, config: Config, logger: AutonegLogger):
        self.config = config
        self.logger = logger

    def resolve_project(self) -> str:
        """Return the configured project, autodetecting it when unset."""
        if self.config.project_id:
            return self.config.project_id

        self.logger.info("-project not specified, trying to autodetect one")
        try:
            project_id = determine_project_id(self.logger)
        except ProjectDetectionError as e:
            raise type(e)(f"failed to detect project, must specify one with -project: {e}") from e
        self.config = self.config.with_project(project_id)
        self.logger.info(f"project detected: {project_id}")
        return project_id

    def list_services(self) -> List[run_v2.Service]:
        """List the Cloud Run services matching the configured selector."""
        return get_cloud_run_services(
            self.logger,
            self.resolve_project(),
            self.config.region,
            self.config.label_selector,
        )

    def run(self) -> List[run_v2.Service]:
        """Run the bootstrap sequence once. Raises AutonegError on failure."""
        self.logger.startup_banner(self.config.to_dict())
        self.resolve_project()

        services = self.list_services()
        for service in services:
            summary = ServiceSummary.from_service(service)
            self.logger.debug(f"found Cloud Run service {summary.name}", **summary.model_dump())

        self.logger.info(
            f"✅ {len(services)} Cloud Run service(s) selected",
            project=self.config.project_id,
            region=self.config.region,
            labelSelector=self.config.label_selector,
        )
        return services


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point; returns the process exit code."""
    load_environment()

    try:
        config = parse_config(argv, os.environ)
    except ConfigError as e:
        service_name = os.environ.get("K_SERVICE") or DEFAULT_SERVICE_NAME
        setup_logger(service_name=service_name,
                     service_version=os.environ.get("K_REVISION") or None).critical(f"invalid configuration: {e}")
        return 1

    logger = setup_logger(level=config.logging_level, service_name=config.service_name,
                          service_version=config.service_version)

    try:
        AutonegController(config, logger).run()
    except AutonegError as e:
        logger.critical(f"❌ {e}")
        return 1
    return 0
