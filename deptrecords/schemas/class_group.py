from typing import List, Optional

from pydantic import Field

from deptrecords.schemas.base import CamelModel


class ClassCreate(CamelModel):
    class_id: str = Field(min_length=1)
    class_name: str = Field(min_length=1)
    division: str = Field(min_length=1)


class ClassUpdate(CamelModel):
    class_name: Optional[str] = Field(default=None, min_length=1)
    division: Optional[str] = Field(default=None, min_length=1)


class StudentIdsRequest(CamelModel):
    student_ids: List[str] = Field(min_length=1)


class ProfessorIdsRequest(CamelModel):
    professor_ids: List[str] = Field(min_length=1)


class ClassOut(CamelModel):
    id: str
    class_id: str
    class_name: str
    division: str
    student_ids: List[str] = Field(default_factory=list)
    professor_ids: List[str] = Field(default_factory=list)


class ClassStudentOut(CamelModel):
    id: str
    enrollment_number: str
    name: str
    semester: int


class ClassProfessorOut(CamelModel):
    id: str
    name: str
    username: str


class ClassDetailOut(ClassOut):
    students: List[ClassStudentOut] = Field(default_factory=list)
    professors: List[ClassProfessorOut] = Field(default_factory=list)
