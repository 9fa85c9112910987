# This module loads mock data on startup in development mode.
import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from . import models
from .security import get_password_hash

logger = logging.getLogger(__name__)

HOSPITALS = [
    ("City General Hospital", "123 Main Street, Downtown, City"),
    ("Metropolitan Medical Center", "456 Oak Avenue, Uptown, City"),
    ("Community Health Clinic", "789 Pine Road, Suburb, City"),
]

DEPARTMENTS = ["Cardiology", "Orthopedics", "Pediatrics", "Neurology"]

DOCTORS = [
    ("Dr. Sarah Johnson", "sarah.johnson@hms.com", "Female", date(1980, 5, 15),
     "MBBS, MD (Cardiology)", ["Cardiology", "Internal Medicine"], 12),
    ("Dr. Michael Chen", "michael.chen@hms.com", "Male", date(1975, 8, 22),
     "MBBS, MS (Orthopedics)", ["Orthopedics", "Sports Medicine"], 15),
    ("Dr. Emily Rodriguez", "emily.rodriguez@hms.com", "Female", date(1985, 3, 10),
     "MBBS, MD (Pediatrics)", ["Pediatrics", "Child Health"], 8),
    ("Dr. David Kim", "david.kim@hms.com", "Male", date(1978, 11, 30),
     "MBBS, DM (Neurology)", ["Neurology"], 14),
]

PATIENTS = [
    ("John Smith", "john.smith@email.com", "Male", date(1990, 1, 12), "AADHAR-1001"),
    ("Maria Garcia", "maria.garcia@email.com", "Female", date(1988, 7, 3), "AADHAR-1002"),
    ("Ahmed Khan", "ahmed.khan@email.com", "Male", date(1995, 9, 21), "PASSPORT-2001"),
]

FEES = [Decimal("500.00"), Decimal("750.00"), Decimal("400.00")]


def seed_mock_data(db: Session, today: date = None) -> bool:
    """Populate an empty database with demo users, hospitals and bookings.

    Returns False without touching anything when users already exist.
    """
    if db.query(models.User).count() > 0:
        logger.info("Database already contains data, skipping seeding")
        return False

    today = today or date.today()
    admin = models.User(
        name="Hospital Admin",
        email="admin@hms.com",
        password=get_password_hash("admin123"),
        role=models.UserRole.hospital_admin,
    )
    db.add(admin)
    db.flush()

    hospitals = []
    for name, location in HOSPITALS:
        hospital = models.Hospital(name=name, location=location, created_by=admin.id)
        hospital.departments = [models.Department(name=dept) for dept in DEPARTMENTS]
        db.add(hospital)
        hospitals.append(hospital)

    doctor_password = get_password_hash("doctor123")
    doctors = []
    for name, email, gender, dob, qualifications, specializations, experience in DOCTORS:
        doctor = models.User(
            name=name, email=email, password=doctor_password,
            role=models.UserRole.doctor, gender=gender, dob=dob,
        )
        doctor.doctor_profile = models.DoctorProfile(
            qualifications=qualifications, specializations=specializations, experience=experience,
        )
        db.add(doctor)
        doctors.append(doctor)

    patient_password = get_password_hash("patient123")
    patients = []
    for name, email, gender, dob, unique_id in PATIENTS:
        patient = models.User(
            name=name, email=email, password=patient_password,
            role=models.UserRole.patient, gender=gender, dob=dob, unique_id=unique_id,
        )
        db.add(patient)
        patients.append(patient)
    db.flush()

    # Each doctor works at two hospitals, mornings at one and afternoons at the other
    tomorrow = today + timedelta(days=1)
    for index, doctor in enumerate(doctors):
        for offset, start_hour in ((0, 9), (1, 14)):
            hospital = hospitals[(index + offset) % len(hospitals)]
            fee = FEES[(index + offset) % len(FEES)]
            db.add(models.DoctorHospital(doctor_id=doctor.id, hospital_id=hospital.id, consultation_fee=fee))
            for day in range(-2, 5):
                start = datetime.combine(tomorrow + timedelta(days=day), time(start_hour))
                db.add(models.Availability(
                    doctor_id=doctor.id, hospital_id=hospital.id,
                    start_time=start, end_time=start + timedelta(hours=3),
                ))
            # A few past consultations so dashboards have numbers
            for day, patient in zip((-2, -1), patients):
                db.add(models.Appointment(
                    patient_id=patient.id, doctor_id=doctor.id, hospital_id=hospital.id,
                    appointment_time=datetime.combine(tomorrow + timedelta(days=day), time(start_hour)),
                    amount_paid=fee,
                ))

    db.commit()
    logger.info(
        f"Seeded {len(hospitals)} hospitals, {len(doctors)} doctors and {len(patients)} patients"
    )
    return True
