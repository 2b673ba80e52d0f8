from uuid import uuid4

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from deptrecords.database import atomic, get_db
from deptrecords.errors import ConflictError
from deptrecords.models import HOD, Class, Professor, Student
from deptrecords.schemas.hod import LoginRequest, RefreshRequest
from deptrecords.schemas.professor import ProfessorCreate, ProfessorOut, ProfessorUpdate
from deptrecords.utils import consistency, registration
from deptrecords.utils.auth import get_current_hod, get_current_professor
from deptrecords.utils.ownership import get_owned_professor
from deptrecords.utils.responses import ok
from deptrecords.utils.sessions import refresh_session, revoke_refresh

router = APIRouter(prefix="/professors", tags=["Professors"])


def _ensure_username_free(db: Session, username: str) -> None:
    if db.query(Professor).filter(Professor.username == username).first():
        raise ConflictError("Username already taken")


# ------------------------------------------------------------
# Вход и маршруты самого преподавателя
# ------------------------------------------------------------

@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    professor, tokens = registration.login_professor(db, payload.username, payload.password)
    return ok(message="Login successful", professor=ProfessorOut.model_validate(professor).dump(), **tokens)


@router.post("/refresh-token")
def refresh_token(payload: RefreshRequest, db: Session = Depends(get_db)):
    return ok(**refresh_session(db, payload.refresh_token))


@router.post("/logout")
def logout(professor: Professor = Depends(get_current_professor), db: Session = Depends(get_db)):
    revoke_refresh(db, professor)
    return ok(message="Logged out")


@router.get("/profile")
def profile(professor: Professor = Depends(get_current_professor)):
    return ok(professor=ProfessorOut.model_validate(professor).dump())


# объявлен раньше /{professor_id}, иначе "classes" примется за id
@router.get("/classes")
def my_classes(professor: Professor = Depends(get_current_professor), db: Session = Depends(get_db)):
    """
    Классы, в которые назначен преподаватель, со списками студентов.
    """
    classes = (
        db.query(Class)
        .filter(Class.owner_hod_id == professor.owner_hod_id)
        .order_by(Class.class_name, Class.division)
        .all()
    )
    result = []
    for cls in classes:
        if professor.id not in cls.professor_ids:
            continue
        students = []
        if cls.student_ids:
            students = (
                db.query(Student)
                .filter(Student.id.in_(list(cls.student_ids)), Student.owner_hod_id == professor.owner_hod_id)
                .order_by(Student.enrollment_number)
                .all()
            )
        result.append({
            "classId": cls.class_id,
            "className": cls.class_name,
            "division": cls.division,
            "students": [
                {"id": s.id, "enrollment": s.enrollment_number, "name": s.name}
                for s in students
            ],
        })
    return ok(classes=result)


# ------------------------------------------------------------
# Управление преподавателями (заведующий)
# ------------------------------------------------------------

@router.post("", status_code=status.HTTP_201_CREATED)
def add_professor(payload: ProfessorCreate, db: Session = Depends(get_db), hod: HOD = Depends(get_current_hod)):
    _ensure_username_free(db, payload.username)

    professor = Professor(
        id=str(uuid4()),
        name=payload.name,
        username=payload.username,
        password=payload.password,
        owner_hod_id=hod.id,
        class_ids=[],
    )
    db.add(professor)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Username already taken")
    db.refresh(professor)

    return ok(message="Professor added successfully", professor=ProfessorOut.model_validate(professor).dump())


@router.get("")
def list_professors(db: Session = Depends(get_db), hod: HOD = Depends(get_current_hod)):
    professors = (
        db.query(Professor)
        .filter(Professor.owner_hod_id == hod.id)
        .order_by(Professor.created_at.desc())
        .all()
    )
    return ok(professors=[ProfessorOut.model_validate(p).dump() for p in professors])


@router.get("/{professor_id}")
def get_professor(professor_id: str, db: Session = Depends(get_db), hod: HOD = Depends(get_current_hod)):
    professor = get_owned_professor(db, hod.id, professor_id)
    return ok(professor=ProfessorOut.model_validate(professor).dump())


@router.put("/{professor_id}")
def update_professor(
    professor_id: str,
    payload: ProfessorUpdate,
    db: Session = Depends(get_db),
    hod: HOD = Depends(get_current_hod),
):
    professor = get_owned_professor(db, hod.id, professor_id)

    if payload.username and payload.username != professor.username:
        _ensure_username_free(db, payload.username)

    if payload.name:
        professor.name = payload.name
    if payload.username:
        professor.username = payload.username
    if payload.password:
        # пароль хешируется только здесь, при явной смене
        professor.password = payload.password
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Username already taken")
    db.refresh(professor)

    return ok(message="Professor updated successfully", professor=ProfessorOut.model_validate(professor).dump())


@router.delete("/{professor_id}")
def delete_professor(professor_id: str, db: Session = Depends(get_db), hod: HOD = Depends(get_current_hod)):
    professor = get_owned_professor(db, hod.id, professor_id)
    with atomic(db):
        consistency.delete_professor(db, professor)
    return ok(message="Professor deleted successfully")
