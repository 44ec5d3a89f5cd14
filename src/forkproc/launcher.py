"""Spawn processes that outlive the process that launched them.

A :class:`ProcessLauncher` holds the spawn configuration (standard streams,
credential, working directory) and starts children that:

* run as the configured uid/gid, with supplementary groups cleared unless
  explicitly configured,
* inherit the caller's full environment verbatim,
* receive exactly three descriptors (stdin, stdout, stderr as 0/1/2),
* lead a new session, so they have no controlling terminal and do not
  receive signals aimed at the caller's session.

The launcher only references the OS process. :meth:`ProcessLauncher.release`
drops that reference; it never waits on, signals or kills the child. The
standard streams belong to the caller, who must close them.
"""

import logging
import os
import subprocess
import warnings
from collections.abc import Sequence
from typing import IO, Any

from forkproc.models import Credential, LaunchConfig

log = logging.getLogger(__name__)

Stream = IO[Any] | int


class LauncherError(RuntimeError):
    """Base error for launcher misuse."""


class ProcessAlreadyTrackedError(LauncherError):
    """Raised when spawning while a previous process is still tracked."""

    def __init__(self, pid: int) -> None:
        super().__init__(
            f"Process {pid} is still tracked by this launcher; release it before spawning again."
        )
        self.pid = pid


def _can_set_groups() -> bool:
    """Return whether the caller may replace the supplementary group list."""
    return os.geteuid() == 0


def build_popen_kwargs(
    credential: Credential,
    working_directory: str,
    stdin: Stream | None,
    stdout: Stream | None,
    stderr: Stream | None,
) -> dict[str, Any]:
    """Return the ``subprocess.Popen`` keyword arguments for a detached spawn."""
    kwargs: dict[str, Any] = {
        "cwd": working_directory,
        "env": dict(os.environ),
        "stdin": stdin,
        "stdout": stdout,
        "stderr": stderr,
        "close_fds": True,
        "pass_fds": (),
        "start_new_session": True,
        "user": credential.uid,
        "group": credential.gid,
    }
    if _can_set_groups():
        kwargs["extra_groups"] = list(credential.groups)
    else:
        # setgroups(2) needs CAP_SETGID; the child keeps the caller's groups.
        log.debug("unprivileged caller, leaving supplementary groups unchanged")
    return kwargs


class ProcessLauncher:
    """Spawn configuration plus at most one tracked process handle.

    Not safe for concurrent use: calls to :meth:`exec` and :meth:`release` on
    one instance must be serialized by the caller.
    """

    def __init__(
        self,
        stdin: Stream | None,
        stdout: Stream | None,
        stderr: Stream | None,
        uid: int,
        gid: int,
        working_directory: str,
        *,
        groups: Sequence[int] = (),
    ) -> None:
        self._stdin = stdin
        self._stdout = stdout
        self._stderr = stderr
        self._credential = Credential(uid=uid, gid=gid, groups=tuple(groups))
        self._working_directory = working_directory
        self._process: subprocess.Popen | None = None

    @classmethod
    def from_config(
        cls,
        config: LaunchConfig,
        stdin: Stream | None,
        stdout: Stream | None,
        stderr: Stream | None,
    ) -> "ProcessLauncher":
        """Build a launcher from a loaded :class:`LaunchConfig`."""
        credential = config.credential()
        return cls(
            stdin,
            stdout,
            stderr,
            credential.uid,
            credential.gid,
            config.working_directory,
            groups=credential.groups,
        )

    @property
    def credential(self) -> Credential:
        return self._credential

    @property
    def working_directory(self) -> str:
        return self._working_directory

    @property
    def process(self) -> subprocess.Popen | None:
        """The tracked process handle, or ``None`` when nothing is tracked."""
        return self._process

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def tracking(self) -> bool:
        return self._process is not None

    def exec(self, detach: bool, executable_path: str, argv: Sequence[str]) -> None:
        """Spawn *executable_path* with *argv* in a new session.

        OS failures (missing file, permission denied, invalid credential,
        resource limits) propagate unchanged and leave the launcher without
        a tracked process. With *detach* the new handle is released before
        returning; the child keeps running either way.
        """
        if self._process is not None:
            raise ProcessAlreadyTrackedError(self._process.pid)
        if not argv:
            raise ValueError("argv must contain at least one element")

        kwargs = build_popen_kwargs(
            self._credential,
            self._working_directory,
            self._stdin,
            self._stdout,
            self._stderr,
        )
        log.debug(
            "spawning %s argv=%r cwd=%r uid=%d gid=%d groups=%r",
            executable_path,
            list(argv),
            self._working_directory,
            self._credential.uid,
            self._credential.gid,
            self._credential.groups,
        )
        self._process = subprocess.Popen(list(argv), executable=executable_path, **kwargs)
        log.debug("spawned pid=%d", self._process.pid)

        if detach:
            self.release()

    def release(self) -> None:
        """Stop tracking the spawned process without waiting on it.

        Collects the exit status only if the child has already exited, so no
        zombie is left behind, then drops the handle. The process itself is
        untouched. The launcher is cleared even if this raises.
        """
        process, self._process = self._process, None
        if process is None:
            return
        log.debug("releasing pid=%d", process.pid)
        process.poll()
        # Popen warns when a handle to a running child is collected.
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", ResourceWarning)
            del process
