from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from app.modules.environments.schemas import (
    EnvironmentResponse, ENVIRONMENT_NAME_PATTERN, NAME_MAX_LENGTH, reject_dot_segment
)


class ProjectCreate(BaseModel):
    id: str = Field(min_length=1, max_length=NAME_MAX_LENGTH, pattern=ENVIRONMENT_NAME_PATTERN)
    name: str = Field(min_length=1)
    description: Optional[str] = None

    @field_validator("id")
    @classmethod
    def check_id(cls, value: str) -> str:
        return reject_dot_segment(value)


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectEnvironmentAdd(BaseModel):
    environment: str = Field(min_length=1)


class ProjectEnvironmentResponse(BaseModel):
    project_id: str
    environment_name: str
    enabled_for_project: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EnvironmentsProjectResponse(BaseModel):
    version: int = 1
    environments: List[EnvironmentResponse]
