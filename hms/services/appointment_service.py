# hms/services/appointment_service.py
import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from . import availability_service

logger = logging.getLogger(__name__)


def validate_booking(
    db: Session,
    patient_id: uuid.UUID,
    doctor_id: uuid.UUID,
    hospital_id: uuid.UUID,
    appointment_time: datetime,
    amount_paid: Decimal,
    slot: timedelta,
    exclude_id: Optional[uuid.UUID] = None,
) -> models.DoctorHospital:
    """Fail-fast booking preconditions; nothing is written here."""
    crud.require_user(db, patient_id, role=models.UserRole.patient)
    crud.require_user(db, doctor_id, role=models.UserRole.doctor)
    crud.require_hospital(db, hospital_id)

    # 1. The consultation slot must sit inside one of the doctor's windows at this hospital
    window = availability_service.find_window_for_slot(db, doctor_id, hospital_id, appointment_time, slot)
    if window is None:
        logger.info(f"Booking rejected: no availability for doctor {doctor_id} at {appointment_time}")
        raise crud.BookingError("Time slot not available")

    # 2. One appointment per (doctor, hospital, time)
    existing = db.query(models.Appointment).filter(
        models.Appointment.doctor_id == doctor_id,
        models.Appointment.hospital_id == hospital_id,
        models.Appointment.appointment_time == appointment_time,
    )
    if exclude_id is not None:
        existing = existing.filter(models.Appointment.id != exclude_id)
    if existing.first():
        logger.info(f"Booking rejected: slot {appointment_time} already taken for doctor {doctor_id}")
        raise crud.BookingError("Appointment already exists for this time slot")

    # 3. The amount paid must equal the stored consultation fee exactly
    link = crud.get_doctor_hospital(db, doctor_id, hospital_id)
    if link is None:
        raise crud.BookingError("Doctor is not associated with this hospital")
    if Decimal(str(amount_paid)) != Decimal(str(link.consultation_fee)):
        logger.info(f"Booking rejected: paid {amount_paid}, expected {link.consultation_fee}")
        raise crud.BookingError("Invalid amount", expected=float(link.consultation_fee))
    return link


def _commit_booking(db: Session, db_appointment: models.Appointment) -> models.Appointment:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # A concurrent request won the same slot between the check and the insert
        if "unique" in str(exc.orig).lower() or "uq_appointment_slot" in str(exc.orig):
            raise crud.BookingError("Appointment already exists for this time slot")
        raise
    db.refresh(db_appointment)
    return db_appointment


def book_appointment(db: Session, appointment: schemas.AppointmentCreate, slot: timedelta) -> models.Appointment:
    validate_booking(
        db,
        patient_id=appointment.patient_id,
        doctor_id=appointment.doctor_id,
        hospital_id=appointment.hospital_id,
        appointment_time=appointment.appointment_time,
        amount_paid=appointment.amount_paid,
        slot=slot,
    )
    db_appointment = models.Appointment(
        patient_id=appointment.patient_id,
        doctor_id=appointment.doctor_id,
        hospital_id=appointment.hospital_id,
        appointment_time=appointment.appointment_time,
        amount_paid=appointment.amount_paid,
    )
    db.add(db_appointment)
    db_appointment = _commit_booking(db, db_appointment)
    logger.info(
        f"Appointment {db_appointment.id} booked: patient {db_appointment.patient_id}, "
        f"doctor {db_appointment.doctor_id}, hospital {db_appointment.hospital_id}, at {db_appointment.appointment_time}"
    )
    return db_appointment


def reschedule_appointment(
    db: Session,
    db_appointment: models.Appointment,
    appointment_update: schemas.AppointmentUpdate,
    slot: timedelta,
) -> models.Appointment:
    """Apply changes to an appointment, re-running every booking rule on the result."""
    data = appointment_update.model_dump(exclude_unset=True, exclude_none=True)
    doctor_id = data.get("doctor_id", db_appointment.doctor_id)
    hospital_id = data.get("hospital_id", db_appointment.hospital_id)
    appointment_time = data.get("appointment_time", db_appointment.appointment_time)
    amount_paid = data.get("amount_paid", db_appointment.amount_paid)

    validate_booking(
        db,
        patient_id=db_appointment.patient_id,
        doctor_id=doctor_id,
        hospital_id=hospital_id,
        appointment_time=appointment_time,
        amount_paid=amount_paid,
        slot=slot,
        exclude_id=db_appointment.id,
    )
    db_appointment.doctor_id = doctor_id
    db_appointment.hospital_id = hospital_id
    db_appointment.appointment_time = appointment_time
    db_appointment.amount_paid = amount_paid
    return _commit_booking(db, db_appointment)
