# tests/test_availability.py
from datetime import datetime, timedelta

import pytest

from hms.services.availability_service import iter_window_slots, slot_fits_window, windows_overlap

HOUR = timedelta(hours=1)
NINE = datetime(2030, 3, 4, 9, 0)


def test_overlap_predicate_is_half_open():
    assert windows_overlap(NINE, NINE + HOUR, NINE + timedelta(minutes=30), NINE + 2 * HOUR)
    assert windows_overlap(NINE, NINE + 3 * HOUR, NINE + HOUR, NINE + 2 * HOUR)
    # Adjacent windows touch but do not overlap
    assert not windows_overlap(NINE, NINE + HOUR, NINE + HOUR, NINE + 2 * HOUR)
    assert not windows_overlap(NINE + HOUR, NINE + 2 * HOUR, NINE, NINE + HOUR)


@pytest.mark.parametrize("offset, fits", [
    (timedelta(0), True),
    (HOUR, True),
    (timedelta(minutes=30), False),
    (2 * HOUR, False),
    (-HOUR, False),
])
def test_slot_grid_containment(offset, fits):
    assert slot_fits_window(NINE, NINE + 2 * HOUR, NINE + offset, HOUR) is fits


def test_window_slots():
    slots = list(iter_window_slots(NINE, NINE + timedelta(minutes=150), HOUR))
    assert slots == [NINE, NINE + HOUR]


def _window(doctor_id, hospital_id, start, end):
    return {"doctor_id": doctor_id, "hospital_id": hospital_id, "start_time": start, "end_time": end}


def test_create_and_list_availability(client, associated_doctor, hospital):
    doctor, headers = associated_doctor
    response = client.post(
        "/api/availability",
        json=_window(doctor["id"], hospital["id"], "2030-03-04T09:00:00", "2030-03-04T10:00:00"),
        headers=headers,
    )
    assert response.status_code == 201
    created = response.json()
    assert created["start_time"] == "2030-03-04T09:00:00"

    listed = client.get(f"/api/availability/doctor/{doctor['id']}/hospital/{hospital['id']}", headers=headers).json()
    assert [w["id"] for w in listed] == [created["id"]]
    assert client.get(f"/api/availability/{created['id']}", headers=headers).json()["hospital"]["name"] == "City General"


def test_timezone_aware_input_is_stored_as_utc(client, associated_doctor, hospital):
    doctor, headers = associated_doctor
    response = client.post(
        "/api/availability",
        json=_window(doctor["id"], hospital["id"], "2030-03-04T14:30:00+05:30", "2030-03-04T15:30:00+05:30"),
        headers=headers,
    )
    assert response.status_code == 201
    assert response.json()["start_time"] == "2030-03-04T09:00:00"


def test_inverted_or_empty_window_is_400(client, associated_doctor, hospital):
    doctor, headers = associated_doctor
    for start, end in (("2030-03-04T10:00:00", "2030-03-04T09:00:00"), ("2030-03-04T10:00:00", "2030-03-04T10:00:00")):
        response = client.post("/api/availability", json=_window(doctor["id"], hospital["id"], start, end), headers=headers)
        assert response.status_code == 400


def test_overlap_is_409_and_adjacent_is_allowed(client, associated_doctor, hospital):
    doctor, headers = associated_doctor
    first = client.post(
        "/api/availability",
        json=_window(doctor["id"], hospital["id"], "2030-03-04T09:00:00", "2030-03-04T10:00:00"),
        headers=headers,
    ).json()

    response = client.post(
        "/api/availability",
        json=_window(doctor["id"], hospital["id"], "2030-03-04T09:30:00", "2030-03-04T10:30:00"),
        headers=headers,
    )
    assert response.status_code == 409
    assert [c["id"] for c in response.json()["conflicts"]] == [first["id"]]

    response = client.post(
        "/api/availability",
        json=_window(doctor["id"], hospital["id"], "2030-03-04T10:00:00", "2030-03-04T11:00:00"),
        headers=headers,
    )
    assert response.status_code == 201


def test_overlap_across_hospitals_is_rejected(client, admin, associated_doctor, hospital):
    doctor, headers = associated_doctor
    _, admin_headers = admin
    other = client.post("/api/hospitals", json={"name": "Lakeside", "location": "Lake Road"}, headers=admin_headers).json()
    client.post(
        f"/api/doctors/{doctor['id']}/associate-hospital",
        json={"hospital_id": other["id"], "consultation_fee": 300},
        headers=headers,
    )
    client.post(
        "/api/availability",
        json=_window(doctor["id"], hospital["id"], "2030-03-04T09:00:00", "2030-03-04T10:00:00"),
        headers=headers,
    )
    response = client.post(
        "/api/availability",
        json=_window(doctor["id"], other["id"], "2030-03-04T09:00:00", "2030-03-04T10:00:00"),
        headers=headers,
    )
    assert response.status_code == 409


def test_update_excludes_the_window_itself(client, associated_doctor, hospital):
    doctor, headers = associated_doctor
    window = client.post(
        "/api/availability",
        json=_window(doctor["id"], hospital["id"], "2030-03-04T09:00:00", "2030-03-04T10:00:00"),
        headers=headers,
    ).json()
    client.post(
        "/api/availability",
        json=_window(doctor["id"], hospital["id"], "2030-03-04T12:00:00", "2030-03-04T13:00:00"),
        headers=headers,
    )

    response = client.put(f"/api/availability/{window['id']}", json={"end_time": "2030-03-04T11:00:00"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["end_time"] == "2030-03-04T11:00:00"

    response = client.put(f"/api/availability/{window['id']}", json={"end_time": "2030-03-04T12:30:00"}, headers=headers)
    assert response.status_code == 409

    response = client.put(f"/api/availability/{window['id']}", json={"start_time": "2030-03-04T11:30:00"}, headers=headers)
    assert response.status_code == 400


def test_unassociated_doctor_is_400(client, doctor, hospital):
    user, headers = doctor
    response = client.post(
        "/api/availability",
        json=_window(user["id"], hospital["id"], "2030-03-04T09:00:00", "2030-03-04T10:00:00"),
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Doctor is not associated with this hospital"


def test_other_doctor_cannot_edit_availability(client, register, associated_doctor, hospital):
    doctor, headers = associated_doctor
    _, other_headers = register("doctor")
    window = client.post(
        "/api/availability",
        json=_window(doctor["id"], hospital["id"], "2030-03-04T09:00:00", "2030-03-04T10:00:00"),
        headers=headers,
    ).json()
    assert client.delete(f"/api/availability/{window['id']}", headers=other_headers).status_code == 403
    assert client.delete(f"/api/availability/{window['id']}", headers=headers).status_code == 204


def test_free_slots_skip_booked_times(client, associated_doctor, hospital, patient):
    doctor, headers = associated_doctor
    client.post(
        "/api/availability",
        json=_window(doctor["id"], hospital["id"], "2030-03-04T09:00:00", "2030-03-04T12:00:00"),
        headers=headers,
    )
    patient_user, patient_headers = patient
    client.post("/api/appointments", json={
        "patient_id": patient_user["id"],
        "doctor_id": doctor["id"],
        "hospital_id": hospital["id"],
        "appointment_time": "2030-03-04T10:00:00",
        "amount_paid": 500,
    }, headers=patient_headers)

    response = client.get(f"/api/availability/available/{doctor['id']}/{hospital['id']}/2030-03-04", headers=patient_headers)
    assert response.status_code == 200
    assert [s["start_time"] for s in response.json()] == ["2030-03-04T09:00:00", "2030-03-04T11:00:00"]
