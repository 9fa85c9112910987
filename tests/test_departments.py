# tests/test_departments.py
import pytest


@pytest.fixture
def two_hospitals(client, admin):
    _, headers = admin
    a = client.post("/api/hospitals", json={"name": "Hospital A", "location": "North"}, headers=headers).json()
    b = client.post("/api/hospitals", json={"name": "Hospital B", "location": "South"}, headers=headers).json()
    return a, b


def test_department_name_unique_per_hospital(client, admin, two_hospitals):
    _, headers = admin
    a, b = two_hospitals

    response = client.post("/api/departments", json={"name": "Cardiology", "hospital_id": a["id"]}, headers=headers)
    assert response.status_code == 201
    assert response.json()["hospital"]["name"] == "Hospital A"

    response = client.post("/api/departments", json={"name": "  Cardiology ", "hospital_id": a["id"]}, headers=headers)
    assert response.status_code == 409

    response = client.post("/api/departments", json={"name": "Cardiology", "hospital_id": b["id"]}, headers=headers)
    assert response.status_code == 201


def test_blank_department_name_is_400(client, admin, hospital):
    _, headers = admin
    response = client.post("/api/departments", json={"name": "   ", "hospital_id": hospital["id"]}, headers=headers)
    assert response.status_code == 400


def test_department_for_unknown_hospital_is_404(client, admin):
    _, headers = admin
    response = client.post(
        "/api/departments",
        json={"name": "Oncology", "hospital_id": "00000000-0000-0000-0000-000000000000"},
        headers=headers,
    )
    assert response.status_code == 404


def test_only_admins_manage_departments(client, doctor, hospital):
    _, headers = doctor
    response = client.post("/api/departments", json={"name": "Oncology", "hospital_id": hospital["id"]}, headers=headers)
    assert response.status_code == 403


def test_update_and_delete_department(client, admin, two_hospitals):
    _, headers = admin
    a, b = two_hospitals
    cardio = client.post("/api/departments", json={"name": "Cardiology", "hospital_id": a["id"]}, headers=headers).json()
    neuro = client.post("/api/departments", json={"name": "Neurology", "hospital_id": a["id"]}, headers=headers).json()

    response = client.put(f"/api/departments/{neuro['id']}", json={"name": "Cardiology"}, headers=headers)
    assert response.status_code == 409

    response = client.put(f"/api/departments/{neuro['id']}", json={"hospital_id": b["id"]}, headers=headers)
    assert response.status_code == 200
    assert response.json()["hospital_id"] == b["id"]

    assert client.delete(f"/api/departments/{cardio['id']}", headers=headers).status_code == 204
    assert client.get(f"/api/departments/{cardio['id']}", headers=headers).status_code == 404


def test_listing_by_hospital_and_unique_names(client, admin, patient, two_hospitals):
    _, headers = admin
    a, b = two_hospitals
    for hospital, name in ((a, "Cardiology"), (a, "Pediatrics"), (b, "Cardiology")):
        client.post("/api/departments", json={"name": name, "hospital_id": hospital["id"]}, headers=headers)

    _, patient_headers = patient
    in_a = client.get(f"/api/departments/hospital/{a['id']}", headers=patient_headers).json()
    assert [d["name"] for d in in_a] == ["Cardiology", "Pediatrics"]

    groups = client.get("/api/departments/unique-names", headers=patient_headers).json()
    assert [(g["name"], g["hospital_count"]) for g in groups] == [("Cardiology", 2), ("Pediatrics", 1)]
    assert [h["name"] for h in groups[0]["hospitals"]] == ["Hospital A", "Hospital B"]

    assert len(client.get("/api/departments", headers=patient_headers).json()) == 3
