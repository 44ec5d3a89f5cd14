"""Model package for forkproc."""

from forkproc.models.credential import MAX_ID, Credential
from forkproc.models.launch_config import DEFAULT_WORKING_DIRECTORY, LaunchConfig

__all__ = [
    "Credential",
    "DEFAULT_WORKING_DIRECTORY",
    "LaunchConfig",
    "MAX_ID",
]
