"""Google Cloud integration: project detection and Cloud Run listing."""

from .cloud_run import get_cloud_run_services, services_parent
from .project import determine_project_id

__all__ = ["determine_project_id", "get_cloud_run_services", "services_parent"]
