from pathlib import Path

from pydantic import BaseModel, Field


class NaryaConfig(BaseModel):
    project: str = Field(..., description="Name of the project this marker file belongs to")
    main_branch: str = Field("main", description="Branch that lint compares against to find changed files")


class Repo(BaseModel):
    root: Path = Field(..., description="Directory that holds the marker file")
    config: NaryaConfig
