"""Google Cloud project detection."""

import subprocess
from typing import Optional

import requests
from google.auth import exceptions as auth_exceptions
# Private google-auth module; is_on_gce/get_project_id are stable across the
# google-auth>=2.20,<3 range declared in pyproject.toml.
from google.auth.compute_engine import _metadata
from google.auth.transport.requests import Request

from ...core.errors import EmptyProjectError, ProjectDetectionError
from ...core.logger import AutonegLogger


GCLOUD_PROJECT_COMMAND = ["gcloud", "config", "get-value", "core/project", "-q"]


def on_gce(request: Request) -> bool:
    """Check whether the metadata server is reachable (GCE, Cloud Run, GKE...)."""
    return _metadata.is_on_gce(request)


def metadata_project_id(request: Request) -> str:
    """Read the project ID from the compute metadata server."""
    return _metadata.get_project_id(request)


def gcloud_project_id(logger: AutonegLogger) -> str:
    """Read core/project from the locally installed gcloud CLI."""
    try:
        result = subprocess.run(
            GCLOUD_PROJECT_COMMAND,
            capture_output=True,
            text=True,
            check=True
        )
    except subprocess.CalledProcessError as e:
        msg = "error when running gcloud command to get default project"
        if e.stderr:
            msg += f", stderr={e.stderr}"
        raise ProjectDetectionError(f"{msg}: {e}") from e
    except OSError as e:
        raise ProjectDetectionError(
            f"error when running gcloud command to get default project: {e}"
        ) from e

    project_id = (result.stdout or "").strip()
    if not project_id:
        raise EmptyProjectError("gcloud command returned empty project value")

    logger.debug("found project ID on gcloud")
    return project_id


def determine_project_id(logger: AutonegLogger, session: Optional[requests.Session] = None) -> str:
    """Determine the project ID from the metadata server or, off GCE, from gcloud.

    One HTTP session serves both metadata calls; it is closed on return
    unless the caller supplied it. Raises ProjectDetectionError (or its
    EmptyProjectError subclass) on failure.
    """
    owns_session = session is None
    if owns_session:
        session = requests.Session()

    try:
        request = Request(session)
        if on_gce(request):
            logger.debug("trying gce metadata service for project ID")
            try:
                project_id = metadata_project_id(request)
            except auth_exceptions.GoogleAuthError as e:
                raise ProjectDetectionError(
                    f"error when getting project ID from compute metadata: {e}"
                ) from e
            logger.debug("found project ID on gce metadata")
            return project_id
    finally:
        if owns_session:
            session.close()

    logger.debug("service not running on gce, trying gcloud for core/project")
    return gcloud_project_id(logger)
