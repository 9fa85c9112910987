# tests/test_revenue.py
from datetime import date, datetime
from decimal import Decimal

import pytest

from hms.services import revenue_service


@pytest.mark.parametrize("amount", ["0.01", "0.05", "1", "333.33", "500", "999.99", "1234.57", "99999999.99"])
def test_shares_always_sum_to_amount(amount):
    amount = Decimal(amount)
    doctor = revenue_service.doctor_share(amount)
    hospital = revenue_service.hospital_share(amount)
    assert doctor + hospital == amount
    assert doctor == doctor.quantize(Decimal("0.01"))


def test_share_rounding():
    assert revenue_service.doctor_share(Decimal("500")) == Decimal("300.00")
    assert revenue_service.hospital_share(Decimal("500")) == Decimal("200.00")
    # 0.006 rounds half up to a cent
    assert revenue_service.doctor_share(Decimal("0.01")) == Decimal("0.01")
    assert revenue_service.hospital_share(Decimal("0.01")) == Decimal("0.00")


def test_month_helpers():
    assert revenue_service.month_key(datetime(2030, 3, 9, 10)) == "2030-03"
    assert revenue_service._months_back(date(2030, 3, 15), 5) == date(2029, 10, 1)


def _book(client, patient, doctor, hospital, when, amount=500):
    user, headers = patient
    response = client.post("/api/appointments", json={
        "patient_id": user["id"],
        "doctor_id": doctor["id"],
        "hospital_id": hospital["id"],
        "appointment_time": when,
        "amount_paid": amount,
    }, headers=headers)
    assert response.status_code == 201, response.text


@pytest.fixture
def two_consultations(client, associated_doctor, hospital, patient):
    doctor, headers = associated_doctor
    client.post("/api/availability", json={
        "doctor_id": doctor["id"],
        "hospital_id": hospital["id"],
        "start_time": "2030-06-01T09:00:00",
        "end_time": "2030-06-01T11:00:00",
    }, headers=headers)
    _book(client, patient, doctor, hospital, "2030-06-01T09:00:00")
    _book(client, patient, doctor, hospital, "2030-06-01T10:00:00")
    return doctor, headers


def test_doctor_earnings(client, hospital, two_consultations):
    doctor, headers = two_consultations
    response = client.get(f"/api/doctors/{doctor['id']}/earnings", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total_earnings"] == 600.0
    assert data["total_consultations"] == 2
    assert data["earnings_by_hospital"] == [{
        "hospital_id": hospital["id"],
        "hospital_name": "City General",
        "earnings": 600.0,
        "consultations": 2,
    }]
    assert data["earnings_by_month"] == [{"month": "2030-06", "earnings": 600.0, "consultations": 2}]


def test_doctor_dashboard(client, two_consultations):
    doctor, headers = two_consultations
    data = client.get(f"/api/doctors/{doctor['id']}/dashboard", headers=headers).json()
    assert data["doctor"]["specializations"] == ["Cardiology"]
    assert data["statistics"] == {"total_consultations": 2, "total_earnings": 600.0, "associated_hospitals": 1}
    assert [a["appointment_time"] for a in data["recent_appointments"]] == [
        "2030-06-01T10:00:00", "2030-06-01T09:00:00",
    ]


def test_earnings_are_private_to_the_doctor(client, register, two_consultations):
    doctor, _ = two_consultations
    _, other_headers = register("doctor")
    assert client.get(f"/api/doctors/{doctor['id']}/earnings", headers=other_headers).status_code == 403


def test_hospital_revenue_and_dashboard(client, admin, hospital, two_consultations):
    _, headers = admin
    revenue = client.get(f"/api/hospitals/{hospital['id']}/revenue", headers=headers).json()
    assert revenue == {"hospital_id": hospital["id"], "total_revenue": 400.0, "total_consultations": 2}

    dashboard = client.get(f"/api/hospitals/{hospital['id']}/dashboard", headers=headers).json()
    assert dashboard == {
        "hospital_id": hospital["id"],
        "total_consultations": 2,
        "total_revenue": 400.0,
        "associated_doctors": 1,
        "departments_count": 0,
    }


def test_revenue_by_doctor(client, admin, hospital, two_consultations):
    doctor, _ = two_consultations
    _, headers = admin
    rows = client.get(f"/api/hospitals/{hospital['id']}/revenue/doctors", headers=headers).json()
    assert rows == [{"doctor_id": doctor["id"], "doctor_name": doctor["name"], "revenue": 400.0, "consultations": 2}]


def test_revenue_by_department_matches_specialization(client, admin, hospital, two_consultations):
    _, headers = admin
    for name in ("Cardiology", "Neurology"):
        client.post("/api/departments", json={"name": name, "hospital_id": hospital["id"]}, headers=headers)

    rows = client.get(f"/api/hospitals/{hospital['id']}/revenue/departments", headers=headers).json()
    by_name = {row["department_name"]: row for row in rows}
    assert by_name["Cardiology"]["revenue"] == 400.0
    assert by_name["Cardiology"]["consultations"] == 2
    assert by_name["Neurology"]["revenue"] == 0.0
    assert "Unassigned" not in by_name


def test_unmatched_specialization_is_unassigned(client, admin, hospital, two_consultations):
    _, headers = admin
    rows = client.get(f"/api/hospitals/{hospital['id']}/revenue/departments", headers=headers).json()
    assert rows == [{"department_id": None, "department_name": "Unassigned", "revenue": 400.0, "consultations": 2}]


def test_hospital_revenue_is_admin_only(client, hospital, two_consultations):
    _, headers = two_consultations
    assert client.get(f"/api/hospitals/{hospital['id']}/revenue", headers=headers).status_code == 403
