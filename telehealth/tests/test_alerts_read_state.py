from telehealth.models.alert import AlertReadReceipt
from telehealth.models.enums import UserRole
from telehealth.services import alerts as alert_service


def _create_alert(client, headers, **overrides):
    body = {"type": "system", "title": "Notice", "message": "Clinic hours changed", "severity": "low"}
    body.update(overrides)
    r = client.post("/api/alerts", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_mark_read_sets_flag_for_that_user_only(client, make_user):
    _, doc_headers = make_user(UserRole.DOCTOR)
    _, first_headers = make_user(UserRole.PATIENT)
    _, second_headers = make_user(UserRole.PATIENT)
    alert = _create_alert(client, doc_headers)

    r = client.patch(f"/api/alerts/{alert['id']}/read", headers=first_headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Alert marked as read"}

    assert client.get(f"/api/alerts/{alert['id']}", headers=first_headers).json()["isRead"] is True
    assert client.get(f"/api/alerts/{alert['id']}", headers=second_headers).json()["isRead"] is False

    feed = client.get("/api/alerts", headers=first_headers).json()["alerts"]
    assert feed[0]["isRead"] is True


def test_mark_read_is_idempotent(client, doctor, patient, db_session):
    _, doc_headers = doctor
    patient_id, pat_headers = patient
    alert = _create_alert(client, doc_headers)

    for _ in range(3):
        assert client.patch(f"/api/alerts/{alert['id']}/read", headers=pat_headers).status_code == 200

    receipts = (
        db_session.query(AlertReadReceipt)
        .filter(AlertReadReceipt.alert_id == alert["id"], AlertReadReceipt.user_id == patient_id)
        .count()
    )
    assert receipts == 1


def test_mark_read_reports_whether_it_inserted(client, doctor, patient, db_session):
    _, doc_headers = doctor
    patient_id, _ = patient
    alert = _create_alert(client, doc_headers)

    assert alert_service.mark_read(db_session, alert["id"], patient_id, UserRole.PATIENT) is True
    assert alert_service.mark_read(db_session, alert["id"], patient_id, UserRole.PATIENT) is False


def test_mark_read_unknown_alert_is_404(client, patient):
    _, headers = patient
    r = client.patch("/api/alerts/does-not-exist/read", headers=headers)
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


def test_mark_read_requires_visibility(client, make_user):
    _, doc_headers = make_user(UserRole.DOCTOR)
    _, pat_headers = make_user(UserRole.PATIENT)
    alert = _create_alert(client, doc_headers, targetRoles=["doctor"])

    r = client.patch(f"/api/alerts/{alert['id']}/read", headers=pat_headers)
    assert r.status_code == 403


def test_deleting_alert_removes_its_receipts(client, doctor, patient, db_session):
    _, doc_headers = doctor
    _, pat_headers = patient
    alert = _create_alert(client, doc_headers)
    client.patch(f"/api/alerts/{alert['id']}/read", headers=pat_headers)

    assert client.delete(f"/api/alerts/{alert['id']}", headers=doc_headers).status_code == 200
    assert db_session.query(AlertReadReceipt).filter(AlertReadReceipt.alert_id == alert["id"]).count() == 0
