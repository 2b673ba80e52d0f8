"""
Общие фикстуры: in-memory SQLite, пересоздаваемая на каждый тест,
и почтальон, который запоминает отправленные коды вместо SMTP.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret-for-testing-only"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from deptrecords.database import Base, SessionLocal, engine  # noqa: E402
from deptrecords.main import app  # noqa: E402
from deptrecords.utils.mailer import Mailer, get_mailer  # noqa: E402


class RecordingMailer(Mailer):
    def __init__(self):
        self.sent = []

    def send_otp(self, email, code, institution_name):
        self.sent.append({"email": email, "code": code, "institution_name": institution_name})

    def last_code(self, email):
        for message in reversed(self.sent):
            if message["email"] == email:
                return message["code"]
        raise AssertionError(f"no OTP sent to {email}")


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(mailer):
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_hod(client, mailer):
    """Регистрирует заведующего (без подтверждения), возвращает email."""

    def _register(username="alice", email=None, password="secret123", institution="Alice College"):
        email = email or f"{username}@college.edu"
        r = client.post(
            "/hods/register",
            json={"institutionName": institution, "username": username, "email": email, "password": password},
        )
        assert r.status_code == 201, r.text
        return email

    return _register


@pytest.fixture
def make_hod(client, mailer, register_hod):
    """Регистрирует и подтверждает заведующего."""

    def _make(username="alice", email=None, password="secret123", institution="Alice College"):
        email = register_hod(username=username, email=email, password=password, institution=institution)
        r = client.post("/hods/verify-otp", json={"email": email, "otp": mailer.last_code(email)})
        assert r.status_code == 200, r.text
        data = r.json()
        return {
            "id": data["hod"]["id"],
            "email": email,
            "token": data["token"],
            "refresh_token": data["refreshToken"],
            "headers": bearer(data["token"]),
        }

    return _make


@pytest.fixture
def hod(make_hod):
    return make_hod()


@pytest.fixture
def make_professor(client):
    def _make(hod_headers, username="prof1", name="Professor One", password="profpass"):
        r = client.post(
            "/professors",
            json={"name": name, "username": username, "password": password},
            headers=hod_headers,
        )
        assert r.status_code == 201, r.text
        return r.json()["professor"]

    return _make


@pytest.fixture
def make_student(client):
    def _make(hod_headers, enrollment="EN001", name="Student One", semester=1, class_id=None):
        payload = {"enrollmentNumber": enrollment, "name": name, "semester": semester}
        if class_id is not None:
            payload["classId"] = class_id
        r = client.post("/students", json=payload, headers=hod_headers)
        assert r.status_code == 201, r.text
        return r.json()["student"]

    return _make


@pytest.fixture
def make_class(client):
    def _make(hod_headers, class_id="CS101-A", class_name="Computer Science", division="A"):
        r = client.post(
            "/classes",
            json={"classId": class_id, "className": class_name, "division": division},
            headers=hod_headers,
        )
        assert r.status_code == 201, r.text
        return r.json()["class"]

    return _make
