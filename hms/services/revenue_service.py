# hms/services/revenue_service.py
"""
Read-side financial figures derived from appointments.

Every appointment's amount_paid is split between the doctor (60%) and the
hospital (40%). The doctor's share is rounded to cents and the hospital gets
the remainder, so the two shares always add up to amount_paid exactly.
Nothing here is stored; each call recomputes from the appointments table.
"""
import uuid
from collections import OrderedDict
from datetime import datetime, date, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from .. import models

DOCTOR_SHARE = Decimal("0.6")
CENT = Decimal("0.01")

UNASSIGNED_DEPARTMENT = "Unassigned"


def _as_decimal(amount) -> Decimal:
    return amount if isinstance(amount, Decimal) else Decimal(str(amount))


def doctor_share(amount) -> Decimal:
    return (_as_decimal(amount) * DOCTOR_SHARE).quantize(CENT, rounding=ROUND_HALF_UP)


def hospital_share(amount) -> Decimal:
    return _as_decimal(amount) - doctor_share(amount)


def month_key(moment: datetime) -> str:
    return f"{moment.year:04d}-{moment.month:02d}"


def _months_back(today: date, months: int) -> date:
    """First day of the month `months` calendar months before today's month."""
    index = today.year * 12 + (today.month - 1) - months
    return date(index // 12, index % 12 + 1, 1)


def _monthly(appointments: List[models.Appointment]) -> List[Dict]:
    buckets: Dict[str, Dict] = {}
    for appointment in appointments:
        key = month_key(appointment.appointment_time)
        bucket = buckets.setdefault(key, {"month": key, "earnings": Decimal("0"), "consultations": 0})
        bucket["earnings"] += doctor_share(appointment.amount_paid)
        bucket["consultations"] += 1
    return [buckets[key] for key in sorted(buckets, reverse=True)]


# ==================== DOCTOR EARNINGS ====================

def _doctor_appointments(db: Session, doctor_id: uuid.UUID) -> List[models.Appointment]:
    return db.query(models.Appointment).options(
        joinedload(models.Appointment.hospital),
        joinedload(models.Appointment.patient),
    ).filter(models.Appointment.doctor_id == doctor_id).order_by(
        models.Appointment.appointment_time.desc()
    ).all()


def doctor_earnings(db: Session, doctor_id: uuid.UUID) -> Dict:
    appointments = _doctor_appointments(db, doctor_id)

    by_hospital: "OrderedDict[uuid.UUID, Dict]" = OrderedDict()
    total = Decimal("0")
    for appointment in appointments:
        share = doctor_share(appointment.amount_paid)
        total += share
        row = by_hospital.setdefault(appointment.hospital_id, {
            "hospital_id": appointment.hospital_id,
            "hospital_name": appointment.hospital.name,
            "earnings": Decimal("0"),
            "consultations": 0,
        })
        row["earnings"] += share
        row["consultations"] += 1

    return {
        "doctor_id": doctor_id,
        "total_earnings": total,
        "total_consultations": len(appointments),
        "earnings_by_hospital": sorted(by_hospital.values(), key=lambda r: r["earnings"], reverse=True),
        "earnings_by_month": _monthly(appointments),
    }


def doctor_dashboard(db: Session, doctor: models.User, today: Optional[date] = None) -> Dict:
    today = today or datetime.now(timezone.utc).date()
    appointments = _doctor_appointments(db, doctor.id)
    associated_hospitals = db.query(models.DoctorHospital).filter(
        models.DoctorHospital.doctor_id == doctor.id
    ).count()

    cutoff = datetime.combine(_months_back(today, 5), datetime.min.time())
    profile = doctor.doctor_profile
    return {
        "doctor": {
            "id": doctor.id,
            "name": doctor.name,
            "email": doctor.email,
            "specializations": list(profile.specializations) if profile else [],
            "qualifications": profile.qualifications if profile else "",
            "experience": profile.experience if profile else 0,
        },
        "statistics": {
            "total_consultations": len(appointments),
            "total_earnings": sum((doctor_share(a.amount_paid) for a in appointments), Decimal("0")),
            "associated_hospitals": associated_hospitals,
        },
        "recent_appointments": [
            {
                "id": a.id,
                "appointment_time": a.appointment_time,
                "amount_paid": a.amount_paid,
                "hospital_name": a.hospital.name if a.hospital else None,
                "patient_name": a.patient.name if a.patient else None,
            }
            for a in appointments[:5]
        ],
        "monthly_earnings": _monthly([a for a in appointments if a.appointment_time >= cutoff]),
    }


# ==================== HOSPITAL REVENUE ====================

def _hospital_appointments(db: Session, hospital_id: uuid.UUID) -> List[models.Appointment]:
    return db.query(models.Appointment).options(
        joinedload(models.Appointment.doctor).joinedload(models.User.doctor_profile),
    ).filter(models.Appointment.hospital_id == hospital_id).all()


def hospital_revenue(db: Session, hospital_id: uuid.UUID) -> Dict:
    appointments = _hospital_appointments(db, hospital_id)
    return {
        "hospital_id": hospital_id,
        "total_revenue": sum((hospital_share(a.amount_paid) for a in appointments), Decimal("0")),
        "total_consultations": len(appointments),
    }


def hospital_dashboard(db: Session, hospital_id: uuid.UUID) -> Dict:
    revenue = hospital_revenue(db, hospital_id)
    return {
        "hospital_id": hospital_id,
        "total_consultations": revenue["total_consultations"],
        "total_revenue": revenue["total_revenue"],
        "associated_doctors": db.query(models.DoctorHospital).filter(
            models.DoctorHospital.hospital_id == hospital_id
        ).count(),
        "departments_count": db.query(models.Department).filter(
            models.Department.hospital_id == hospital_id
        ).count(),
    }


def revenue_by_doctor(db: Session, hospital_id: uuid.UUID) -> List[Dict]:
    rows: "OrderedDict[uuid.UUID, Dict]" = OrderedDict()
    for appointment in _hospital_appointments(db, hospital_id):
        row = rows.setdefault(appointment.doctor_id, {
            "doctor_id": appointment.doctor_id,
            "doctor_name": appointment.doctor.name,
            "revenue": Decimal("0"),
            "consultations": 0,
        })
        row["revenue"] += hospital_share(appointment.amount_paid)
        row["consultations"] += 1
    return sorted(rows.values(), key=lambda r: r["revenue"], reverse=True)


def match_department(specializations: List[str], departments_by_name: Dict[str, models.Department]) -> Optional[models.Department]:
    """The department named after the doctor's first specialization this hospital has."""
    for specialization in specializations or []:
        department = departments_by_name.get(specialization.strip().lower())
        if department is not None:
            return department
    return None


def revenue_by_department(db: Session, hospital_id: uuid.UUID) -> List[Dict]:
    departments = db.query(models.Department).filter(
        models.Department.hospital_id == hospital_id
    ).order_by(models.Department.name).all()
    departments_by_name = {d.name.strip().lower(): d for d in departments}

    rows = OrderedDict(
        (d.id, {"department_id": d.id, "department_name": d.name, "revenue": Decimal("0"), "consultations": 0})
        for d in departments
    )
    unassigned = {"department_id": None, "department_name": UNASSIGNED_DEPARTMENT, "revenue": Decimal("0"), "consultations": 0}

    for appointment in _hospital_appointments(db, hospital_id):
        profile = appointment.doctor.doctor_profile if appointment.doctor else None
        department = match_department(profile.specializations if profile else [], departments_by_name)
        row = rows[department.id] if department is not None else unassigned
        row["revenue"] += hospital_share(appointment.amount_paid)
        row["consultations"] += 1

    result = list(rows.values())
    if unassigned["consultations"]:
        result.append(unassigned)
    return result
