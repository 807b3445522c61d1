"""Exceptions raised by the Autoneg Controller."""


class AutonegError(Exception):
    """Base class for every error the controller reports."""


class ConfigError(AutonegError):
    """Invalid command-line flags or environment."""


class ProjectDetectionError(AutonegError):
    """The Google Cloud project could not be determined."""


class EmptyProjectError(ProjectDetectionError):
    """gcloud ran successfully but has no default project configured."""


class ServiceListError(AutonegError):
    """Cloud Run services could not be listed."""
