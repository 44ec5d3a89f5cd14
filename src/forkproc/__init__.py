"""Launch processes that survive their parent."""

from forkproc.launcher import LauncherError, ProcessAlreadyTrackedError, ProcessLauncher
from forkproc.models import Credential, LaunchConfig

__version__ = "0.1.0"

__all__ = [
    "Credential",
    "LaunchConfig",
    "LauncherError",
    "ProcessAlreadyTrackedError",
    "ProcessLauncher",
    "__version__",
]
