from __future__ import annotations

from uuid import uuid4

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from deptrecords.database import atomic, get_db
from deptrecords.errors import ConflictError
from deptrecords.models import HOD, Class, Professor, Student
from deptrecords.schemas.class_group import (
    ClassCreate,
    ClassDetailOut,
    ClassOut,
    ClassProfessorOut,
    ClassStudentOut,
    ClassUpdate,
    ProfessorIdsRequest,
    StudentIdsRequest,
)
from deptrecords.utils import consistency
from deptrecords.utils.auth import get_current_hod
from deptrecords.utils.ownership import get_owned_class
from deptrecords.utils.responses import ok

router = APIRouter(prefix="/classes", tags=["Classes"])


def _detail(db: Session, cls: Class) -> dict:
    students = []
    if cls.student_ids:
        students = (
            db.query(Student)
            .filter(Student.id.in_(list(cls.student_ids)), Student.owner_hod_id == cls.owner_hod_id)
            .order_by(Student.enrollment_number)
            .all()
        )
    professors = []
    if cls.professor_ids:
        professors = (
            db.query(Professor)
            .filter(Professor.id.in_(list(cls.professor_ids)), Professor.owner_hod_id == cls.owner_hod_id)
            .order_by(Professor.name)
            .all()
        )
    detail = ClassDetailOut.model_validate(cls)
    detail.students = [ClassStudentOut.model_validate(s) for s in students]
    detail.professors = [ClassProfessorOut.model_validate(p) for p in professors]
    return detail.dump()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_class(payload: ClassCreate, db: Session = Depends(get_db), hod: HOD = Depends(get_current_hod)):
    """
    Создаёт класс, привязанный к заведующему. Код класса уникален у заведующего.
    """
    exists = (
        db.query(Class)
        .filter(Class.class_id == payload.class_id, Class.owner_hod_id == hod.id)
        .first()
    )
    if exists:
        raise ConflictError("Class with this ID already exists")

    new_class = Class(
        id=str(uuid4()),
        class_id=payload.class_id,
        class_name=payload.class_name,
        division=payload.division,
        student_ids=[],
        professor_ids=[],
        owner_hod_id=hod.id,
    )
    db.add(new_class)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Class with this ID already exists")
    db.refresh(new_class)

    return ok(message="Class created successfully", **{"class": ClassOut.model_validate(new_class).dump()})


@router.get("")
def list_classes(db: Session = Depends(get_db), hod: HOD = Depends(get_current_hod)):
    classes = (
        db.query(Class)
        .filter(Class.owner_hod_id == hod.id)
        .order_by(Class.class_name, Class.division)
        .all()
    )
    return ok(classes=[ClassOut.model_validate(c).dump() for c in classes])


@router.get("/{class_id}")
def get_class(class_id: str, db: Session = Depends(get_db), hod: HOD = Depends(get_current_hod)):
    cls = get_owned_class(db, hod.id, class_id)
    return ok(**{"class": _detail(db, cls)})


@router.put("/{class_id}")
def update_class(
    class_id: str,
    payload: ClassUpdate,
    db: Session = Depends(get_db),
    hod: HOD = Depends(get_current_hod),
):
    # код класса не меняется: на него ссылаются студенты и преподаватели
    cls = get_owned_class(db, hod.id, class_id)
    if payload.class_name:
        cls.class_name = payload.class_name
    if payload.division:
        cls.division = payload.division
    db.commit()
    db.refresh(cls)
    return ok(message="Class updated successfully", **{"class": ClassOut.model_validate(cls).dump()})


@router.delete("/{class_id}")
def delete_class(class_id: str, db: Session = Depends(get_db), hod: HOD = Depends(get_current_hod)):
    cls = get_owned_class(db, hod.id, class_id)
    with atomic(db):
        consistency.delete_class(db, cls)
    return ok(message="Class deleted successfully")


@router.post("/{class_id}/students")
def assign_students(
    class_id: str,
    payload: StudentIdsRequest,
    db: Session = Depends(get_db),
    hod: HOD = Depends(get_current_hod),
):
    cls = get_owned_class(db, hod.id, class_id)
    with atomic(db):
        students = consistency.assign_students(db, cls, payload.student_ids)
    return ok(message=f"{len(students)} students assigned to class successfully")


@router.delete("/{class_id}/students")
def remove_students(
    class_id: str,
    payload: StudentIdsRequest = Body(...),
    db: Session = Depends(get_db),
    hod: HOD = Depends(get_current_hod),
):
    cls = get_owned_class(db, hod.id, class_id)
    with atomic(db):
        students = consistency.remove_students(db, cls, payload.student_ids)
    return ok(message=f"{len(students)} students removed from class successfully")


@router.post("/{class_id}/professors")
def assign_professors(
    class_id: str,
    payload: ProfessorIdsRequest,
    db: Session = Depends(get_db),
    hod: HOD = Depends(get_current_hod),
):
    cls = get_owned_class(db, hod.id, class_id)
    with atomic(db):
        professors = consistency.assign_professors(db, cls, payload.professor_ids)
    return ok(message=f"{len(professors)} professors assigned to class successfully")


@router.delete("/{class_id}/professors")
def remove_professors(
    class_id: str,
    payload: ProfessorIdsRequest = Body(...),
    db: Session = Depends(get_db),
    hod: HOD = Depends(get_current_hod),
):
    cls = get_owned_class(db, hod.id, class_id)
    with atomic(db):
        professors = consistency.remove_professors(db, cls, payload.professor_ids)
    return ok(message=f"{len(professors)} professors removed from class successfully")
