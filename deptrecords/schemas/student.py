from typing import Optional

from pydantic import Field

from deptrecords.schemas.base import CamelModel


class StudentCreate(CamelModel):
    enrollment_number: str = Field(min_length=1)
    name: str = Field(min_length=1)
    semester: int = Field(ge=1)
    class_id: Optional[str] = None


class StudentUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    semester: Optional[int] = Field(default=None, ge=1)
    # явный null снимает студента с класса
    class_id: Optional[str] = None


class StudentOut(CamelModel):
    id: str
    enrollment_number: str
    name: str
    semester: int
    class_id: Optional[str] = None
