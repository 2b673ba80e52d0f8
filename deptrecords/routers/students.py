from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from deptrecords.database import atomic, get_db
from deptrecords.errors import ConflictError, ValidationError
from deptrecords.models import HOD, Student
from deptrecords.schemas.student import StudentCreate, StudentOut, StudentUpdate
from deptrecords.utils import consistency
from deptrecords.utils.auth import get_current_hod
from deptrecords.utils.ownership import get_owned_student
from deptrecords.utils.responses import ok
from deptrecords.utils.spreadsheet import parse_students

router = APIRouter(prefix="/students", tags=["Students"])

EXCEL_SUFFIXES = (".xlsx", ".xlsm")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_student(payload: StudentCreate, db: Session = Depends(get_db), hod: HOD = Depends(get_current_hod)):
    if db.query(Student).filter(Student.enrollment_number == payload.enrollment_number).first():
        raise ConflictError("Enrollment number already exists")

    student = Student(
        id=str(uuid4()),
        enrollment_number=payload.enrollment_number,
        name=payload.name,
        semester=payload.semester,
        class_id=None,
        owner_hod_id=hod.id,
    )
    try:
        with atomic(db):
            db.add(student)
            if payload.class_id:
                consistency.move_student(db, student, payload.class_id)
    except IntegrityError:
        raise ConflictError("Enrollment number already exists")
    db.refresh(student)

    return ok(message="Student created successfully", student=StudentOut.model_validate(student).dump())


@router.post("/bulk-upload", status_code=status.HTTP_201_CREATED)
def bulk_upload(
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    hod: HOD = Depends(get_current_hod),
):
    """
    Загрузка студентов из .xlsx. Уже существующие номера зачётных книжек
    и повторы внутри файла пропускаются.
    """
    if file is None or not file.filename:
        raise ValidationError("Please upload an Excel file")
    if not file.filename.lower().endswith(EXCEL_SUFFIXES):
        raise ValidationError("Only Excel files (.xlsx) are allowed")

    rows = parse_students(file.file.read())
    if not rows:
        raise ValidationError("No valid student data found in the Excel file")

    unique_rows = {}
    for row in rows:
        unique_rows.setdefault(row["enrollment_number"], row)

    existing = {
        number
        for (number,) in db.query(Student.enrollment_number)
        .filter(Student.enrollment_number.in_(list(unique_rows)))
        .all()
    }
    new_rows = [row for number, row in unique_rows.items() if number not in existing]
    if not new_rows:
        raise ValidationError("All students in the file already exist in the database")

    try:
        with atomic(db):
            db.add_all([
                Student(id=str(uuid4()), class_id=None, owner_hod_id=hod.id, **row)
                for row in new_rows
            ])
    except IntegrityError:
        raise ConflictError("Some enrollment numbers were registered concurrently, please retry")

    return ok(
        message=f"{len(new_rows)} students uploaded successfully",
        totalUploaded=len(new_rows),
        totalSkipped=len(rows) - len(new_rows),
    )


@router.get("")
def list_students(
    semester: Optional[int] = Query(None, ge=1),
    class_id: Optional[str] = Query(None, alias="classId"),
    db: Session = Depends(get_db),
    hod: HOD = Depends(get_current_hod),
):
    query = db.query(Student).filter(Student.owner_hod_id == hod.id)
    if semester is not None:
        query = query.filter(Student.semester == semester)
    if class_id:
        query = query.filter(Student.class_id == class_id)
    students = query.order_by(Student.enrollment_number).all()
    return ok(students=[StudentOut.model_validate(s).dump() for s in students])


@router.get("/{student_id}")
def get_student(student_id: str, db: Session = Depends(get_db), hod: HOD = Depends(get_current_hod)):
    student = get_owned_student(db, hod.id, student_id)
    return ok(student=StudentOut.model_validate(student).dump())


@router.put("/{student_id}")
def update_student(
    student_id: str,
    payload: StudentUpdate,
    db: Session = Depends(get_db),
    hod: HOD = Depends(get_current_hod),
):
    student = get_owned_student(db, hod.id, student_id)
    with atomic(db):
        if "class_id" in payload.model_fields_set:
            consistency.move_student(db, student, payload.class_id or None)
        if payload.name:
            student.name = payload.name
        if payload.semester is not None:
            student.semester = payload.semester
    db.refresh(student)
    return ok(message="Student updated successfully", student=StudentOut.model_validate(student).dump())


@router.delete("/{student_id}")
def delete_student(student_id: str, db: Session = Depends(get_db), hod: HOD = Depends(get_current_hod)):
    student = get_owned_student(db, hod.id, student_id)
    with atomic(db):
        consistency.delete_student(db, student)
    return ok(message="Student deleted successfully")
