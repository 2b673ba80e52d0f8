from typing import List, Optional

from pydantic import Field

from deptrecords.schemas.base import CamelModel


class ProfessorCreate(CamelModel):
    name: str = Field(min_length=1)
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)


class ProfessorUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    username: Optional[str] = Field(default=None, min_length=3)
    password: Optional[str] = Field(default=None, min_length=6)


class ProfessorOut(CamelModel):
    id: str
    name: str
    username: str
    classes: List[str] = Field(default_factory=list, validation_alias="class_ids")
