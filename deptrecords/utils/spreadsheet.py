# deptrecords/utils/spreadsheet.py
from __future__ import annotations

import io
import logging
import zipfile
from typing import Any, Dict, List, Optional

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from deptrecords.errors import ValidationError

logger = logging.getLogger(__name__)

# Возможные названия колонок в загружаемых таблицах
ENROLLMENT_COLUMNS = ("EnrollmentNumber", "Enrollment", "Roll", "RollNumber", "ID")
NAME_COLUMNS = ("Name", "StudentName", "FullName")
SEMESTER_COLUMNS = ("Semester", "Sem")


def _pick(row: Dict[str, Any], names) -> Any:
    for name in names:
        value = row.get(name)
        if value not in (None, ""):
            return value
    return None


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    # числа из Excel приходят как float: 1001.0 -> "1001"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _semester(value: Any) -> int:
    if value in (None, ""):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 1


def parse_students(content: bytes) -> List[Dict[str, Any]]:
    """
    Читает первый лист .xlsx: первая строка содержит заголовки.
    Возвращает [{"enrollment_number", "name", "semester"}], строки без
    номера/имени или с семестром < 1 отбрасываются.
    """
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        logger.warning("Unreadable spreadsheet: %s", exc)
        raise ValidationError("Failed to parse Excel file") from exc

    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header: Optional[tuple] = next(rows, None)
        if not header:
            return []
        columns = [_cell_text(h) for h in header]

        students = []
        for values in rows:
            row = {col: val for col, val in zip(columns, values) if col}
            student = {
                "enrollment_number": _cell_text(_pick(row, ENROLLMENT_COLUMNS)),
                "name": _cell_text(_pick(row, NAME_COLUMNS)),
                "semester": _semester(_pick(row, SEMESTER_COLUMNS)),
            }
            if student["enrollment_number"] and student["name"] and student["semester"] > 0:
                students.append(student)
        return students
    finally:
        workbook.close()
