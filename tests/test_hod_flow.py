from datetime import timedelta

from deptrecords.models import HOD
from deptrecords.utils.timeutils import utcnow
from deptrecords.utils.tokens import create_access_token, decode_access_token


def _register(client, username="alice", email="alice@x.com", password="secret123"):
    return client.post(
        "/hods/register",
        json={"institutionName": "Alice College", "username": username, "email": email, "password": password},
    )


def test_full_registration_scenario(client, mailer):
    r = _register(client)
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["email"] == "alice@x.com"
    assert "token" not in body
    hod_id = body["hodId"]

    code = mailer.last_code("alice@x.com")
    wrong = "000000" if code != "000000" else "111111"

    r = client.post("/hods/verify-otp", json={"email": "alice@x.com", "otp": wrong})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Invalid or expired OTP"}

    r = client.post("/hods/verify-otp", json={"email": "alice@x.com", "otp": code})
    assert r.status_code == 200
    body = r.json()
    assert body["hod"]["id"] == hod_id
    assert body["hod"]["verified"] is True
    assert decode_access_token(body["token"]).id == hod_id
    assert body["refreshToken"]

    r = client.post("/hods/verify-otp", json={"email": "alice@x.com", "otp": code})
    assert r.status_code == 400
    assert r.json()["error"] == "Email already verified"

    r = client.post("/hods/login", json={"username": "alice", "password": "secret123"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["hod"]["username"] == "alice"
    assert decode_access_token(body["token"]).role == "hod"


def test_otp_is_mailed_with_institution_name(client, mailer):
    _register(client)
    assert mailer.sent[-1]["email"] == "alice@x.com"
    assert mailer.sent[-1]["institution_name"] == "Alice College"


def test_password_and_otp_are_not_stored_in_plaintext(client, mailer, db):
    _register(client)
    hod = db.query(HOD).filter_by(username="alice").one()
    assert hod.password_hash != "secret123"
    assert hod.otp_code == mailer.last_code("alice@x.com")

    client.post("/hods/verify-otp", json={"email": "alice@x.com", "otp": hod.otp_code})
    db.expire_all()
    hod = db.query(HOD).filter_by(username="alice").one()
    assert hod.verified is True
    assert hod.otp_code is None
    assert hod.otp_expires_at is None


def test_duplicate_email_conflicts(client, db):
    _register(client)
    r = _register(client, username="alice2", email="ALICE@x.com")
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Email already registered"}
    assert db.query(HOD).count() == 1


def test_duplicate_username_conflicts(client, db):
    _register(client)
    r = _register(client, username="alice", email="other@x.com")
    assert r.status_code == 400
    assert r.json()["error"] == "Username already taken"
    assert db.query(HOD).count() == 1


def test_registration_validation(client):
    r = _register(client, username="al")
    assert r.status_code == 400
    assert r.json()["success"] is False

    r = _register(client, password="12345")
    assert r.status_code == 400

    r = _register(client, email="not-an-email")
    assert r.status_code == 400


def test_login_before_verification_is_forbidden(client):
    _register(client)
    r = client.post("/hods/login", json={"username": "alice", "password": "secret123"})
    assert r.status_code == 403
    body = r.json()
    assert body["success"] is False
    assert "token" not in body
    assert "not verified" in body["error"]


def test_unverified_with_wrong_password_is_invalid_credentials(client):
    _register(client)
    r = client.post("/hods/login", json={"username": "alice", "password": "wrongpass"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid credentials"


def test_login_does_not_reveal_which_part_was_wrong(client, make_hod):
    make_hod()
    unknown = client.post("/hods/login", json={"username": "nobody", "password": "secret123"})
    wrong = client.post("/hods/login", json={"username": "alice", "password": "wrongpass"})
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json() == {"success": False, "error": "Invalid credentials"}


def test_verify_unknown_email_is_not_found(client):
    r = client.post("/hods/verify-otp", json={"email": "ghost@x.com", "otp": "123456"})
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_expired_otp_is_rejected(client, mailer, db):
    _register(client)
    code = mailer.last_code("alice@x.com")
    hod = db.query(HOD).filter_by(username="alice").one()
    hod.otp_expires_at = utcnow() - timedelta(seconds=1)
    db.commit()

    r = client.post("/hods/verify-otp", json={"email": "alice@x.com", "otp": code})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid or expired OTP"


def test_resend_overwrites_previous_code(client, mailer, db):
    _register(client)
    old_code = mailer.last_code("alice@x.com")

    r = client.post("/hods/resend-otp", json={"email": "alice@x.com"})
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "OTP resent successfully", "email": "alice@x.com"}
    new_code = mailer.last_code("alice@x.com")
    assert len(mailer.sent) == 2

    hod = db.query(HOD).filter_by(username="alice").one()
    assert hod.otp_code == new_code

    if old_code != new_code:
        r = client.post("/hods/verify-otp", json={"email": "alice@x.com", "otp": old_code})
        assert r.status_code == 400

    r = client.post("/hods/verify-otp", json={"email": "alice@x.com", "otp": new_code})
    assert r.status_code == 200


def test_resend_for_verified_or_unknown(client, make_hod):
    make_hod()
    r = client.post("/hods/resend-otp", json={"email": "alice@college.edu"})
    assert r.status_code == 400
    assert r.json()["error"] == "Email already verified"

    r = client.post("/hods/resend-otp", json={"email": "ghost@college.edu"})
    assert r.status_code == 404


def test_profile(client, hod):
    r = client.get("/hods/profile", headers=hod["headers"])
    assert r.status_code == 200
    profile = r.json()["hod"]
    assert profile == {
        "id": hod["id"],
        "username": "alice",
        "institutionName": "Alice College",
        "email": "alice@college.edu",
        "verified": True,
    }


def test_unverified_hod_token_is_forbidden(client, db):
    _register(client)
    hod = db.query(HOD).filter_by(username="alice").one()
    token = create_access_token(hod.id, "hod")
    r = client.get("/hods/profile", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403
    assert r.json() == {"success": False, "error": "Email verification required"}


def test_mail_failure_leaves_account_pending(client, mailer, db):
    from deptrecords.errors import InternalError

    def broken(email, code, institution_name):
        raise InternalError("Failed to send verification email")

    mailer.send_otp = broken
    r = _register(client)
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Failed to send verification email"}
    assert db.query(HOD).filter_by(username="alice", verified=False).count() == 1
