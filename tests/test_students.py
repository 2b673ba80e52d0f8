import io

import pytest
from openpyxl import Workbook

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _xlsx(rows):
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _upload(client, headers, content, filename="students.xlsx"):
    return client.post("/students/bulk-upload", files={"file": (filename, content, XLSX)}, headers=headers)


def test_create_student(client, hod):
    r = client.post("/students", json={"enrollmentNumber": "EN001", "name": "Ann", "semester": 3},
                    headers=hod["headers"])
    assert r.status_code == 201
    student = r.json()["student"]
    assert student["enrollmentNumber"] == "EN001"
    assert student["semester"] == 3
    assert student["classId"] is None


def test_create_student_into_class(client, hod, make_class):
    make_class(hod["headers"])
    r = client.post("/students", json={"enrollmentNumber": "EN001", "name": "Ann", "semester": 1,
                                       "classId": "CS101-A"}, headers=hod["headers"])
    assert r.status_code == 201
    student = r.json()["student"]
    assert student["classId"] == "CS101-A"
    cls = client.get("/classes/CS101-A", headers=hod["headers"]).json()["class"]
    assert cls["studentIds"] == [student["id"]]


def test_create_student_into_missing_class_creates_nothing(client, hod):
    r = client.post("/students", json={"enrollmentNumber": "EN001", "name": "Ann", "semester": 1,
                                       "classId": "NOPE"}, headers=hod["headers"])
    assert r.status_code == 404
    assert client.get("/students", headers=hod["headers"]).json()["students"] == []


def test_duplicate_enrollment(client, hod, make_hod, make_student):
    make_student(hod["headers"], enrollment="EN001")
    other = make_hod(username="bob")
    r = client.post("/students", json={"enrollmentNumber": "EN001", "name": "Dup", "semester": 1},
                    headers=other["headers"])
    assert r.status_code == 400
    assert r.json()["error"] == "Enrollment number already exists"


@pytest.mark.parametrize("semester", [0, -1])
def test_semester_must_be_positive(client, hod, semester):
    r = client.post("/students", json={"enrollmentNumber": "EN001", "name": "Ann", "semester": semester},
                    headers=hod["headers"])
    assert r.status_code == 400


def test_list_filters(client, hod, make_class, make_student):
    make_class(hod["headers"])
    make_student(hod["headers"], enrollment="EN003", semester=2, class_id="CS101-A")
    make_student(hod["headers"], enrollment="EN001", semester=1)
    make_student(hod["headers"], enrollment="EN002", semester=2)

    def enrollments(**params):
        r = client.get("/students", params=params, headers=hod["headers"])
        assert r.status_code == 200
        return [s["enrollmentNumber"] for s in r.json()["students"]]

    assert enrollments() == ["EN001", "EN002", "EN003"]
    assert enrollments(semester=2) == ["EN002", "EN003"]
    assert enrollments(classId="CS101-A") == ["EN003"]


def test_students_are_scoped_to_owner(client, hod, make_hod, make_student):
    student = make_student(hod["headers"])
    other = make_hod(username="bob")

    assert client.get("/students", headers=other["headers"]).json()["students"] == []
    foreign = client.get(f"/students/{student['id']}", headers=other["headers"])
    missing = client.get("/students/does-not-exist", headers=other["headers"])
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()
    assert client.delete(f"/students/{student['id']}", headers=other["headers"]).status_code == 404


def test_update_student_moves_between_classes(client, hod, make_class, make_student):
    make_class(hod["headers"], class_id="CS101-A")
    make_class(hod["headers"], class_id="CS102-A")
    student = make_student(hod["headers"], class_id="CS101-A")

    r = client.put(f"/students/{student['id']}", json={"classId": "CS102-A", "semester": 2},
                   headers=hod["headers"])
    assert r.status_code == 200
    assert r.json()["student"]["classId"] == "CS102-A"
    assert r.json()["student"]["semester"] == 2

    old = client.get("/classes/CS101-A", headers=hod["headers"]).json()["class"]
    new = client.get("/classes/CS102-A", headers=hod["headers"]).json()["class"]
    assert old["studentIds"] == []
    assert new["studentIds"] == [student["id"]]


def test_failed_move_leaves_student_in_place(client, hod, make_class, make_student):
    make_class(hod["headers"])
    student = make_student(hod["headers"], class_id="CS101-A")

    r = client.put(f"/students/{student['id']}", json={"classId": "NOPE", "name": "Changed"},
                   headers=hod["headers"])
    assert r.status_code == 404
    assert r.json()["error"] == "Class not found"

    fetched = client.get(f"/students/{student['id']}", headers=hod["headers"]).json()["student"]
    assert fetched["classId"] == "CS101-A"
    assert fetched["name"] == "Student One"
    assert client.get("/classes/CS101-A", headers=hod["headers"]).json()["class"]["studentIds"] == [student["id"]]


def test_move_into_foreign_class_is_not_found(client, hod, make_hod, make_class, make_student):
    other = make_hod(username="bob")
    make_class(other["headers"], class_id="BOB-1")
    student = make_student(hod["headers"])

    r = client.put(f"/students/{student['id']}", json={"classId": "BOB-1"}, headers=hod["headers"])
    assert r.status_code == 404
    assert client.get("/classes/BOB-1", headers=other["headers"]).json()["class"]["studentIds"] == []


def test_explicit_null_class_unassigns(client, hod, make_class, make_student):
    make_class(hod["headers"])
    student = make_student(hod["headers"], class_id="CS101-A")

    r = client.put(f"/students/{student['id']}", json={"classId": None}, headers=hod["headers"])
    assert r.status_code == 200
    assert r.json()["student"]["classId"] is None
    assert client.get("/classes/CS101-A", headers=hod["headers"]).json()["class"]["studentIds"] == []


def test_update_without_class_keeps_assignment(client, hod, make_class, make_student):
    make_class(hod["headers"])
    student = make_student(hod["headers"], class_id="CS101-A")
    r = client.put(f"/students/{student['id']}", json={"name": "Renamed"}, headers=hod["headers"])
    assert r.json()["student"]["classId"] == "CS101-A"
    assert r.json()["student"]["name"] == "Renamed"


def test_bulk_upload(client, hod, make_student):
    make_student(hod["headers"], enrollment="EN001")
    content = _xlsx([
        ["EnrollmentNumber", "Name", "Semester"],
        ["EN001", "Already There", 1],
        ["EN002", "Bea", 2],
        ["EN003", "Cid", 3],
        ["EN003", "Cid Again", 3],
        ["", "No Number", 1],
        ["EN004", "", 1],
    ])
    r = _upload(client, hod["headers"], content)
    assert r.status_code == 201
    body = r.json()
    assert body["totalUploaded"] == 2
    assert body["totalSkipped"] == 2

    students = client.get("/students", headers=hod["headers"]).json()["students"]
    assert {s["enrollmentNumber"]: s["semester"] for s in students} == {"EN001": 1, "EN002": 2, "EN003": 3}


def test_bulk_upload_column_aliases(client, hod):
    content = _xlsx([["Roll", "StudentName", "Sem"], [1001, "Dan", 4]])
    r = _upload(client, hod["headers"], content)
    assert r.status_code == 201
    students = client.get("/students", headers=hod["headers"]).json()["students"]
    assert students[0]["enrollmentNumber"] == "1001"
    assert students[0]["name"] == "Dan"
    assert students[0]["semester"] == 4


def test_bulk_upload_nothing_new(client, hod, make_student):
    make_student(hod["headers"], enrollment="EN001")
    r = _upload(client, hod["headers"], _xlsx([["Enrollment", "Name", "Semester"], ["EN001", "Ann", 1]]))
    assert r.status_code == 400
    assert r.json()["error"] == "All students in the file already exist in the database"


def test_bulk_upload_rejects_bad_files(client, hod):
    assert _upload(client, hod["headers"], b"a,b,c", filename="students.csv").status_code == 400
    assert _upload(client, hod["headers"], b"not a workbook").status_code == 400
    assert _upload(client, hod["headers"], _xlsx([["Name"], ["Ann"]])).status_code == 400
    r = client.post("/students/bulk-upload", headers=hod["headers"])
    assert r.status_code == 400
    assert r.json()["error"] == "Please upload an Excel file"
