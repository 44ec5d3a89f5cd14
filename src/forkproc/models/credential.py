"""Credential model for launched processes."""

import os

from pydantic import BaseModel, ConfigDict, Field

MAX_ID = 2**32 - 1


class Credential(BaseModel):
    """The uid, gid and supplementary groups a child process executes under.

    An empty ``groups`` tuple means the supplementary groups are cleared and
    the child runs with exactly its primary group.
    """

    model_config = ConfigDict(frozen=True)

    uid: int = Field(ge=0, le=MAX_ID)
    gid: int = Field(ge=0, le=MAX_ID)
    groups: tuple[int, ...] = ()

    @classmethod
    def current(cls) -> "Credential":
        """Return the calling process's own real uid/gid."""
        return cls(uid=os.getuid(), gid=os.getgid())
