# tests/test_appointments.py
import pytest


@pytest.fixture
def morning_window(client, associated_doctor, hospital):
    doctor, headers = associated_doctor
    response = client.post("/api/availability", json={
        "doctor_id": doctor["id"],
        "hospital_id": hospital["id"],
        "start_time": "2030-05-20T09:00:00",
        "end_time": "2030-05-20T11:00:00",
    }, headers=headers)
    assert response.status_code == 201
    return response.json()


def _booking(patient, doctor, hospital, when="2030-05-20T09:00:00", amount=500):
    return {
        "patient_id": patient["id"],
        "doctor_id": doctor["id"],
        "hospital_id": hospital["id"],
        "appointment_time": when,
        "amount_paid": amount,
    }


def test_doctor_to_booking_end_to_end(client, register, admin):
    _, admin_headers = admin
    doctor, doctor_headers = register(
        "doctor", qualifications="MBBS", specializations=["Cardiology"], experience=5
    )
    hospital = client.post(
        "/api/hospitals", json={"name": "City General", "location": "Main Street"}, headers=admin_headers
    ).json()

    response = client.post(
        f"/api/doctors/{doctor['id']}/associate-hospital",
        json={"hospital_id": hospital["id"], "consultation_fee": 500},
        headers=doctor_headers,
    )
    assert response.status_code == 201
    assert response.json()["consultation_fee"] == 500.0

    response = client.post("/api/availability", json={
        "doctor_id": doctor["id"],
        "hospital_id": hospital["id"],
        "start_time": "2030-05-20T09:00:00",
        "end_time": "2030-05-20T10:00:00",
    }, headers=doctor_headers)
    assert response.status_code == 201

    patient, patient_headers = register("patient")
    response = client.post("/api/appointments", json=_booking(patient, doctor, hospital), headers=patient_headers)
    assert response.status_code == 201
    booked = response.json()
    assert booked["amount_paid"] == 500.0
    assert booked["doctor"]["id"] == doctor["id"]
    assert booked["hospital"]["name"] == "City General"

    response = client.post("/api/appointments", json=_booking(patient, doctor, hospital), headers=patient_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Appointment already exists for this time slot"


def test_wrong_amount_reports_expected_fee(client, associated_doctor, hospital, patient, morning_window):
    doctor, _ = associated_doctor
    user, headers = patient
    response = client.post("/api/appointments", json=_booking(user, doctor, hospital, amount=450), headers=headers)
    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid amount", "expected": 500.0}


def test_time_outside_window_or_off_grid_is_rejected(client, associated_doctor, hospital, patient, morning_window):
    doctor, _ = associated_doctor
    user, headers = patient
    for when in ("2030-05-20T08:00:00", "2030-05-20T09:30:00", "2030-05-20T10:30:00", "2030-05-21T09:00:00"):
        response = client.post("/api/appointments", json=_booking(user, doctor, hospital, when=when), headers=headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Time slot not available"


def test_unknown_participants_are_404(client, associated_doctor, hospital, patient, morning_window):
    doctor, _ = associated_doctor
    user, headers = patient
    payload = _booking(user, doctor, hospital)
    payload["doctor_id"] = user["id"]
    response = client.post("/api/appointments", json=payload, headers=headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Doctor not found"


def test_patient_cannot_book_for_someone_else(client, register, associated_doctor, hospital, patient, morning_window):
    doctor, _ = associated_doctor
    user, _ = patient
    _, other_headers = register("patient")
    response = client.post("/api/appointments", json=_booking(user, doctor, hospital), headers=other_headers)
    assert response.status_code == 403


def test_reschedule_revalidates_and_cancel_deletes(client, associated_doctor, hospital, patient, morning_window):
    doctor, doctor_headers = associated_doctor
    user, headers = patient
    first = client.post("/api/appointments", json=_booking(user, doctor, hospital), headers=headers).json()
    second = client.post(
        "/api/appointments", json=_booking(user, doctor, hospital, when="2030-05-20T10:00:00"), headers=headers
    ).json()

    # Moving onto the other booking's slot is refused
    response = client.put(
        f"/api/appointments/{first['id']}", json={"appointment_time": "2030-05-20T10:00:00"}, headers=headers
    )
    assert response.status_code == 400

    # Re-saving the same slot does not collide with itself
    response = client.put(f"/api/appointments/{first['id']}", json={"amount_paid": 500}, headers=headers)
    assert response.status_code == 200

    assert client.delete(f"/api/appointments/{second['id']}", headers=doctor_headers).status_code == 204
    response = client.put(
        f"/api/appointments/{first['id']}", json={"appointment_time": "2030-05-20T10:00:00"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["appointment_time"] == "2030-05-20T10:00:00"
    assert client.get(f"/api/appointments/{second['id']}", headers=headers).status_code == 404


def test_filtered_lists_are_newest_first(client, associated_doctor, hospital, patient, morning_window):
    doctor, _ = associated_doctor
    user, headers = patient
    for when in ("2030-05-20T09:00:00", "2030-05-20T10:00:00"):
        client.post("/api/appointments", json=_booking(user, doctor, hospital, when=when), headers=headers)

    for path in (f"patient/{user['id']}", f"doctor/{doctor['id']}", f"hospital/{hospital['id']}"):
        times = [a["appointment_time"] for a in client.get(f"/api/appointments/{path}", headers=headers).json()]
        assert times == ["2030-05-20T10:00:00", "2030-05-20T09:00:00"]
