from telehealth.models.enums import UserRole
from telehealth.models.user import User


def _register(client, **overrides):
    body = {
        "email": "Jane.Doe@Example.com",
        "password": "secret123",
        "firstName": "Jane",
        "lastName": "Doe",
        "role": "patient",
    }
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


def test_register_returns_tokens_and_profile(client):
    r = _register(client, dateOfBirth="1990-04-02", gender="female")
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["message"] == "User registered successfully"
    assert body["token"] and body["refreshToken"]
    assert body["user"]["email"] == "jane.doe@example.com"
    assert body["user"]["role"] == "patient"
    assert body["user"]["dateOfBirth"] == "1990-04-02"
    assert "hashedPassword" not in body["user"]


def test_register_drops_fields_of_other_role(client):
    r = _register(client, email="doc@example.com", role="doctor", specialization=" Cardiology ", gender="male")
    assert r.status_code == 201
    user = r.json()["user"]
    assert user["specialization"] == "Cardiology"
    assert user["gender"] is None

    r = _register(client, email="pat@example.com", specialization="Cardiology")
    assert r.json()["user"]["specialization"] is None


def test_doctor_requires_specialization(client):
    r = _register(client, role="doctor")
    assert r.status_code == 400
    assert r.json()["details"][0]["field"] == "specialization"


def test_register_validation_errors(client):
    r = _register(client, password="123")
    assert r.status_code == 400
    assert r.json()["code"] == "BAD_REQUEST"
    assert any(d["field"] == "password" for d in r.json()["details"])

    assert _register(client, email="not-an-email").status_code == 400
    assert _register(client, role="admin").status_code == 400


def test_duplicate_email_is_conflict(client):
    assert _register(client).status_code == 201
    r = _register(client, email="jane.doe@example.com")
    assert r.status_code == 400
    assert r.json()["code"] == "CONFLICT"


def test_login_and_me(client):
    _register(client)
    r = client.post("/api/auth/login", json={"email": "jane.doe@example.com", "password": "secret123"})
    assert r.status_code == 200
    token = r.json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["user"]["firstName"] == "Jane"


def test_login_bad_credentials(client):
    _register(client)
    r = client.post("/api/auth/login", json={"email": "jane.doe@example.com", "password": "wrong-pass"})
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHORIZED"
    r = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert r.status_code == 401


def test_unknown_hash_format_never_verifies(client, db_session):
    db_session.add(User(
        email="legacy@example.com",
        hashed_password="plaintext-password",
        first_name="Legacy",
        last_name="User",
        role=UserRole.PATIENT,
    ))
    db_session.commit()
    r = client.post("/api/auth/login", json={"email": "legacy@example.com", "password": "plaintext-password"})
    assert r.status_code == 401


def test_refresh_flow(client, patient, refresh_token_for):
    patient_id, _ = patient
    refresh_token = refresh_token_for(patient_id)

    r = client.post("/api/auth/refresh", json={"refreshToken": refresh_token})
    assert r.status_code == 200
    new_token = r.json()["token"]
    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_token}"}).status_code == 200

    # A refresh token is not an access token
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {refresh_token}"})
    assert r.status_code == 401


def test_refresh_rejects_access_token(client, patient):
    _, headers = patient
    access = headers["Authorization"].split(" ", 1)[1]
    assert client.post("/api/auth/refresh", json={"refreshToken": access}).status_code == 401


def test_invalid_or_missing_token(client):
    assert client.get("/api/auth/me").status_code == 401
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid or expired token"


def test_profile_update_respects_role_whitelist(client, patient, doctor):
    _, pat_headers = patient
    _, doc_headers = doctor

    r = client.patch("/api/auth/me", json={"phone": "+254700000000", "gender": "other"}, headers=pat_headers)
    assert r.status_code == 200
    assert r.json()["user"]["gender"] == "other"

    r = client.patch("/api/auth/me", json={"specialization": "Dermatology"}, headers=pat_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid updates"

    r = client.patch("/api/auth/me", json={"specialization": "Dermatology"}, headers=doc_headers)
    assert r.status_code == 200
    assert r.json()["user"]["specialization"] == "Dermatology"

    r = client.patch("/api/auth/me", json={"role": "doctor"}, headers=pat_headers)
    assert r.status_code == 400


def test_login_is_rate_limited(client):
    creds = {"email": "ghost@example.com", "password": "whatever"}
    statuses = [client.post("/api/auth/login", json=creds).status_code for _ in range(11)]
    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429

    r = client.post("/api/auth/login", json=creds)
    assert r.status_code == 429
    assert r.json()["code"] == "TOO_MANY_REQUESTS"
    assert "Retry-After" in r.headers
