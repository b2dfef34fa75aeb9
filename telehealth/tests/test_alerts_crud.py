def _alert_body(**overrides):
    body = {
        "type": "outbreak",
        "title": "Measles exposure",
        "message": "Possible exposure at the north clinic",
        "severity": "high",
    }
    body.update(overrides)
    return body


def _file_report(client, headers):
    r = client.post(
        "/api/reports",
        json={"symptoms": ["rash", "fever"], "severity": "moderate", "duration": "3 days"},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()["id"]


def test_doctor_creates_alert_with_geo_and_metadata(client, doctor, patient):
    _, doc_headers = doctor
    _, pat_headers = patient
    report_id = _file_report(client, pat_headers)

    body = _alert_body(
        geographicArea={
            "country": "KE",
            "city": "Nairobi",
            "coordinates": {"type": "Point", "coordinates": [36.82, -1.29]},
            "radius": 15,
        },
        metadata={"symptomPattern": ["rash", "fever"], "affectedCount": 12, "relatedReports": [report_id]},
    )
    r = client.post("/api/alerts", json=body, headers=doc_headers)
    assert r.status_code == 201, r.text
    alert = r.json()
    assert alert["isActive"] is True
    assert alert["isRead"] is False
    assert alert["geographicArea"]["coordinates"]["coordinates"] == [36.82, -1.29]
    assert alert["geographicArea"]["radius"] == 15
    assert alert["metadata"]["symptomPattern"] == ["rash", "fever"]
    assert alert["metadata"]["affectedCount"] == 12
    assert [rep["id"] for rep in alert["metadata"]["relatedReports"]] == [report_id]


def test_patient_cannot_create_alert(client, patient):
    _, headers = patient
    r = client.post("/api/alerts", json=_alert_body(), headers=headers)
    assert r.status_code == 403
    assert r.json()["code"] == "FORBIDDEN"


def test_create_rejects_bad_enums_and_blank_text(client, doctor):
    _, headers = doctor
    assert client.post("/api/alerts", json=_alert_body(severity="extreme"), headers=headers).status_code == 400
    assert client.post("/api/alerts", json=_alert_body(type="weather"), headers=headers).status_code == 400
    r = client.post("/api/alerts", json=_alert_body(title="   "), headers=headers)
    assert r.status_code == 400
    assert r.json()["code"] == "BAD_REQUEST"


def test_create_rejects_out_of_range_coordinates(client, doctor):
    _, headers = doctor
    body = _alert_body(geographicArea={"coordinates": {"type": "Point", "coordinates": [200, 10]}})
    assert client.post("/api/alerts", json=body, headers=headers).status_code == 400


def test_create_rejects_unknown_target_user(client, doctor):
    _, headers = doctor
    r = client.post("/api/alerts", json=_alert_body(targetUsers=["nobody"]), headers=headers)
    assert r.status_code == 400
    assert r.json()["details"][0]["field"] == "targetUsers"


def test_update_whitelisted_fields(client, doctor):
    _, headers = doctor
    alert = client.post("/api/alerts", json=_alert_body(), headers=headers).json()

    r = client.patch(
        f"/api/alerts/{alert['id']}",
        json={"title": "Measles confirmed", "severity": "critical", "metadata": {"affectedCount": 30}},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    updated = r.json()
    assert updated["title"] == "Measles confirmed"
    assert updated["severity"] == "critical"
    assert updated["message"] == alert["message"]
    assert updated["metadata"]["affectedCount"] == 30


def test_update_with_disallowed_field_changes_nothing(client, doctor):
    _, headers = doctor
    alert = client.post("/api/alerts", json=_alert_body(), headers=headers).json()

    r = client.patch(
        f"/api/alerts/{alert['id']}",
        json={"title": "Changed", "targetRoles": ["doctor"]},
        headers=headers,
    )
    assert r.status_code == 400

    current = client.get(f"/api/alerts/{alert['id']}", headers=headers).json()
    assert current["title"] == alert["title"]
    assert current["targetRoles"] == []


def test_deactivated_alert_cannot_be_reactivated(client, doctor):
    _, headers = doctor
    alert = client.post("/api/alerts", json=_alert_body(), headers=headers).json()

    assert client.patch(f"/api/alerts/{alert['id']}", json={"isActive": False}, headers=headers).status_code == 200
    r = client.patch(f"/api/alerts/{alert['id']}", json={"isActive": True}, headers=headers)
    assert r.status_code == 400
    assert r.json()["details"][0]["field"] == "isActive"


def test_patient_cannot_update_or_delete(client, doctor, patient):
    _, doc_headers = doctor
    _, pat_headers = patient
    alert = client.post("/api/alerts", json=_alert_body(), headers=doc_headers).json()

    assert client.patch(f"/api/alerts/{alert['id']}", json={"title": "x"}, headers=pat_headers).status_code == 403
    assert client.delete(f"/api/alerts/{alert['id']}", headers=pat_headers).status_code == 403


def test_update_and_delete_unknown_alert(client, doctor):
    _, headers = doctor
    assert client.patch("/api/alerts/missing", json={"title": "x"}, headers=headers).status_code == 404
    assert client.delete("/api/alerts/missing", headers=headers).status_code == 404


def test_delete_alert(client, doctor):
    _, headers = doctor
    alert = client.post("/api/alerts", json=_alert_body(), headers=headers).json()

    r = client.delete(f"/api/alerts/{alert['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Alert deleted successfully"}
    assert client.get(f"/api/alerts/{alert['id']}", headers=headers).status_code == 404
