from telehealth.models.enums import UserRole


def _book(client, headers, doctor_id, **overrides):
    body = {"doctorId": doctor_id, "scheduledAt": "2030-05-01T09:30:00Z", "type": "video"}
    body.update(overrides)
    return client.post("/api/consultations", json=body, headers=headers)


def test_patient_books_for_themselves(client, patient, doctor):
    patient_id, pat_headers = patient
    doctor_id, _ = doctor
    r = _book(client, pat_headers, doctor_id)
    assert r.status_code == 201, r.text
    consultation = r.json()
    assert consultation["patientId"] == patient_id
    assert consultation["doctor"]["id"] == doctor_id
    assert consultation["status"] == "scheduled"


def test_patient_cannot_book_for_someone_else(client, make_user, doctor):
    _, pat_headers = make_user(UserRole.PATIENT)
    other_id, _ = make_user(UserRole.PATIENT)
    doctor_id, _ = doctor
    r = _book(client, pat_headers, doctor_id, patientId=other_id)
    assert r.status_code == 403


def test_booking_validates_participants(client, make_user, patient):
    patient_id, pat_headers = patient
    doctor_id, doc_headers = make_user(UserRole.DOCTOR)

    r = _book(client, pat_headers, patient_id)
    assert r.status_code == 400
    assert r.json()["details"][0]["field"] == "doctorId"

    r = _book(client, doc_headers, doctor_id)
    assert r.status_code == 400
    assert r.json()["details"][0]["field"] == "patientId"

    r = _book(client, pat_headers, doctor_id, reportId="missing")
    assert r.status_code == 400
    assert r.json()["details"][0]["field"] == "reportId"

    assert _book(client, pat_headers, doctor_id, type="carrier-pigeon").status_code == 400


def test_doctor_books_with_report(client, patient, doctor):
    patient_id, pat_headers = patient
    doctor_id, doc_headers = doctor
    report_id = client.post(
        "/api/reports",
        json={"symptoms": ["cough"], "severity": "mild", "duration": "1 week"},
        headers=pat_headers,
    ).json()["id"]

    r = _book(client, doc_headers, doctor_id, patientId=patient_id, reportId=report_id, type="audio")
    assert r.status_code == 201, r.text
    assert r.json()["report"]["id"] == report_id


def test_list_is_scoped_and_filtered(client, make_user):
    patient_id, pat_headers = make_user(UserRole.PATIENT)
    _, other_pat_headers = make_user(UserRole.PATIENT)
    doctor_id, doc_headers = make_user(UserRole.DOCTOR)
    _, other_doc_headers = make_user(UserRole.DOCTOR)

    _book(client, pat_headers, doctor_id, scheduledAt="2030-05-01T09:30:00Z")
    _book(client, pat_headers, doctor_id, scheduledAt="2030-05-03T14:00:00Z", type="chat")
    _book(client, other_pat_headers, doctor_id, scheduledAt="2030-05-01T16:00:00Z")

    mine = client.get("/api/consultations", headers=pat_headers).json()
    assert mine["total"] == 2
    assert [c["scheduledAt"][:10] for c in mine["consultations"]] == ["2030-05-03", "2030-05-01"]

    assert client.get("/api/consultations", headers=doc_headers).json()["total"] == 3
    assert client.get("/api/consultations", headers=other_doc_headers).json()["total"] == 0

    on_day = client.get("/api/consultations", params={"date": "2030-05-01"}, headers=doc_headers).json()
    assert on_day["total"] == 2
    chats = client.get("/api/consultations", params={"type": "chat"}, headers=doc_headers).json()
    assert chats["total"] == 1
    assert all(c["patientId"] == patient_id for c in chats["consultations"])


def test_only_participants_can_read(client, make_user, patient, doctor):
    _, pat_headers = patient
    doctor_id, doc_headers = doctor
    _, stranger_headers = make_user(UserRole.DOCTOR)
    consultation_id = _book(client, pat_headers, doctor_id).json()["id"]

    assert client.get(f"/api/consultations/{consultation_id}", headers=doc_headers).status_code == 200
    assert client.get(f"/api/consultations/{consultation_id}", headers=stranger_headers).status_code == 403
    assert client.get("/api/consultations/missing", headers=doc_headers).status_code == 404


def test_doctor_records_outcome(client, patient, doctor):
    _, pat_headers = patient
    doctor_id, doc_headers = doctor
    consultation_id = _book(client, pat_headers, doctor_id).json()["id"]

    r = client.patch(
        f"/api/consultations/{consultation_id}",
        json={
            "status": "completed",
            "notes": "Viral infection",
            "duration": 20,
            "prescription": {"medications": [{"name": "Paracetamol", "dosage": "500mg"}], "notes": "With food"},
            "followUp": {"required": True, "instructions": "Return if fever persists"},
        },
        headers=doc_headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "completed"
    assert body["notes"] == "Viral infection"
    assert body["prescription"]["medications"][0]["name"] == "Paracetamol"
    assert body["followUp"]["required"] is True

    assert client.patch(
        f"/api/consultations/{consultation_id}", json={"duration": -5}, headers=doc_headers
    ).status_code == 400
    assert client.patch(
        f"/api/consultations/{consultation_id}", json={"doctorId": doctor_id}, headers=doc_headers
    ).status_code == 400


def test_patient_may_only_cancel(client, patient, doctor):
    _, pat_headers = patient
    doctor_id, _ = doctor
    consultation_id = _book(client, pat_headers, doctor_id).json()["id"]

    r = client.patch(f"/api/consultations/{consultation_id}", json={"status": "completed"}, headers=pat_headers)
    assert r.status_code == 403
    r = client.patch(f"/api/consultations/{consultation_id}", json={"notes": "hi"}, headers=pat_headers)
    assert r.status_code == 403

    r = client.patch(f"/api/consultations/{consultation_id}", json={"status": "cancelled"}, headers=pat_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"


def test_participant_deletes(client, make_user, patient, doctor):
    _, pat_headers = patient
    doctor_id, _ = doctor
    _, stranger_headers = make_user(UserRole.PATIENT)
    consultation_id = _book(client, pat_headers, doctor_id).json()["id"]

    assert client.delete(f"/api/consultations/{consultation_id}", headers=stranger_headers).status_code == 403
    assert client.delete(f"/api/consultations/{consultation_id}", headers=pat_headers).status_code == 200
    assert client.get(f"/api/consultations/{consultation_id}", headers=pat_headers).status_code == 404
