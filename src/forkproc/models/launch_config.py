"""Launch configuration model for forkproc."""

from pydantic import BaseModel, Field

from forkproc.models.credential import MAX_ID, Credential

DEFAULT_WORKING_DIRECTORY = "/"


class LaunchConfig(BaseModel):
    """Runtime configuration for launching a detached process."""

    uid: int = Field(ge=0, le=MAX_ID)
    gid: int = Field(ge=0, le=MAX_ID)
    working_directory: str = DEFAULT_WORKING_DIRECTORY
    supplementary_groups: list[int] = []

    def credential(self) -> Credential:
        return Credential(
            uid=self.uid,
            gid=self.gid,
            groups=tuple(self.supplementary_groups),
        )
