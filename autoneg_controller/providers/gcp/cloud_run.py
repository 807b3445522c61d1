"""Cloud Run service listing."""

from typing import List, Optional

from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import run_v2

from ...core.errors import ServiceListError
from ...core.logger import AutonegLogger
from ...core.models import LabelSelector


def services_parent(project: str, region: str) -> str:
    """Build the parent resource name services are listed under."""
    return f"projects/{project}/locations/{region}"


def create_services_client() -> run_v2.ServicesClient:
    """Create a Cloud Run client from Application Default Credentials."""
    try:
        return run_v2.ServicesClient()
    except auth_exceptions.GoogleAuthError as e:
        raise ServiceListError(f"failed to initialize Cloud Run client: {e}") from e


def get_cloud_run_services(logger: AutonegLogger,
                           project: str,
                           region: str,
                           label_selector: str = "",
                           client: Optional[run_v2.ServicesClient] = None) -> List[run_v2.Service]:
    """List the Cloud Run services of a region that match a label selector.

    The v2 API has no server-side label filter, so the selector is applied
    to each service's labels after the listing.
    """
    lg = logger.with_fields(region=region, labelSelector=label_selector)

    try:
        selector = LabelSelector.parse(label_selector)
    except ValueError as e:
        raise ServiceListError(f"invalid label selector {label_selector!r}: {e}") from e

    lg.debug("querying Cloud Run services")
    if client is None:
        client = create_services_client()

    try:
        services = list(client.list_services(parent=services_parent(project, region)))
    except (api_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
        raise ServiceListError(
            f"failed to get services with label {label_selector!r} in region {region!r}: {e}"
        ) from e

    matched = [service for service in services if selector.matches(service.labels)]
    lg.debug("finished retrieving services from the API", n=len(matched), total=len(services))
    return matched
