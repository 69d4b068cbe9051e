from pydantic import BaseModel, Field, RootModel, field_validator
from typing import Optional, List, Dict
from datetime import datetime

ENVIRONMENT_NAME_PATTERN = r"^[A-Za-z0-9_.~-]+$"
NAME_MAX_LENGTH = 100


def is_dot_segment(name: str) -> bool:
    """"." and ".." are normalised away by URL clients, so they can never be addressed by path"""
    return name.strip(".") == ""


def reject_dot_segment(name: str) -> str:
    if is_dot_segment(name):
        raise ValueError("name must contain a character other than '.'")
    return name


class EnvironmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH, pattern=ENVIRONMENT_NAME_PATTERN)
    type: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    sort_order: Optional[int] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return reject_dot_segment(value)


class EnvironmentUpdate(BaseModel):
    # No name field: the name is the identifier and cannot be changed
    class Config:
        extra = "forbid"

    type: Optional[str] = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    sort_order: Optional[int] = None


class EnvironmentResponse(BaseModel):
    name: str
    type: str
    enabled: bool = False
    sort_order: int
    project_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EnvironmentsResponse(BaseModel):
    version: int = 1
    environments: List[EnvironmentResponse]


class SortOrderUpdate(RootModel[Dict[str, int]]):
    """Mapping of environment name to its new sort order."""


class NameValidationRequest(BaseModel):
    name: str


class NameValidationResponse(BaseModel):
    name: str
    available: bool
