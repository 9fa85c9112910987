# hms/services/availability_service.py
import logging
import uuid
from datetime import date, datetime, time, timedelta
from typing import Iterator, List, Optional

from sqlalchemy.orm import Session

from .. import crud, models, schemas

logger = logging.getLogger(__name__)


def windows_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open intervals [start, end) overlap iff each starts before the other ends."""
    return start_a < end_b and end_a > start_b


def validate_window(start_time: datetime, end_time: datetime):
    if end_time <= start_time:
        raise crud.ValidationError("end_time must be after start_time")


def slot_fits_window(window_start: datetime, window_end: datetime, slot_start: datetime, slot: timedelta) -> bool:
    """A slot fits when it lies inside the window and starts on the window's slot grid."""
    if slot_start < window_start or slot_start + slot > window_end:
        return False
    return (slot_start - window_start) % slot == timedelta(0)


def iter_window_slots(window_start: datetime, window_end: datetime, slot: timedelta) -> Iterator[datetime]:
    current = window_start
    while current + slot <= window_end:
        yield current
        current += slot


def _lock_doctor(db: Session, doctor_id: uuid.UUID):
    # Serialises concurrent availability writes for one doctor (no-op on SQLite)
    db.query(models.User.id).filter(models.User.id == doctor_id).with_for_update().first()


def find_conflicts(
    db: Session,
    doctor_id: uuid.UUID,
    start_time: datetime,
    end_time: datetime,
    exclude_id: Optional[uuid.UUID] = None,
) -> List[models.Availability]:
    """Existing windows of the doctor, at any hospital, that overlap [start_time, end_time)."""
    query = db.query(models.Availability).filter(
        models.Availability.doctor_id == doctor_id,
        models.Availability.start_time < end_time,
        models.Availability.end_time > start_time,
    )
    if exclude_id is not None:
        query = query.filter(models.Availability.id != exclude_id)
    return query.order_by(models.Availability.start_time).all()


def _raise_on_conflicts(conflicts: List[models.Availability]):
    if not conflicts:
        return
    logger.info(f"Rejected availability window: {len(conflicts)} conflicting window(s)")
    raise crud.ConflictError(
        "Time slot conflicts with existing availability",
        conflicts=[
            schemas.AvailabilityResponse.model_validate(row).model_dump(mode="json", exclude={"hospital"})
            for row in conflicts
        ],
    )


def _require_association(db: Session, doctor_id: uuid.UUID, hospital_id: uuid.UUID):
    crud.require_hospital(db, hospital_id)
    if crud.get_doctor_hospital(db, doctor_id, hospital_id) is None:
        raise crud.ValidationError("Doctor is not associated with this hospital")


def create_availability(db: Session, availability: schemas.AvailabilityCreate) -> models.Availability:
    validate_window(availability.start_time, availability.end_time)
    crud.require_user(db, availability.doctor_id, role=models.UserRole.doctor)
    _require_association(db, availability.doctor_id, availability.hospital_id)

    _lock_doctor(db, availability.doctor_id)
    _raise_on_conflicts(find_conflicts(db, availability.doctor_id, availability.start_time, availability.end_time))

    db_availability = models.Availability(
        doctor_id=availability.doctor_id,
        hospital_id=availability.hospital_id,
        start_time=availability.start_time,
        end_time=availability.end_time,
    )
    db.add(db_availability)
    db.commit()
    db.refresh(db_availability)
    logger.info(
        f"Availability {db_availability.id} created for doctor {db_availability.doctor_id} "
        f"at hospital {db_availability.hospital_id}: {db_availability.start_time} - {db_availability.end_time}"
    )
    return db_availability


def update_availability(
    db: Session,
    db_availability: models.Availability,
    availability_update: schemas.AvailabilityUpdate,
) -> models.Availability:
    data = availability_update.model_dump(exclude_unset=True, exclude_none=True)
    hospital_id = data.get("hospital_id", db_availability.hospital_id)
    start_time = data.get("start_time", db_availability.start_time)
    end_time = data.get("end_time", db_availability.end_time)

    validate_window(start_time, end_time)
    if hospital_id != db_availability.hospital_id:
        _require_association(db, db_availability.doctor_id, hospital_id)

    _lock_doctor(db, db_availability.doctor_id)
    _raise_on_conflicts(find_conflicts(
        db, db_availability.doctor_id, start_time, end_time, exclude_id=db_availability.id
    ))

    db_availability.hospital_id = hospital_id
    db_availability.start_time = start_time
    db_availability.end_time = end_time
    db.commit()
    db.refresh(db_availability)
    return db_availability


def find_window_for_slot(
    db: Session,
    doctor_id: uuid.UUID,
    hospital_id: uuid.UUID,
    slot_start: datetime,
    slot: timedelta,
) -> Optional[models.Availability]:
    candidates = db.query(models.Availability).filter(
        models.Availability.doctor_id == doctor_id,
        models.Availability.hospital_id == hospital_id,
        models.Availability.start_time <= slot_start,
        models.Availability.end_time >= slot_start + slot,
    ).all()
    for window in candidates:
        if slot_fits_window(window.start_time, window.end_time, slot_start, slot):
            return window
    return None


def get_free_slots(
    db: Session,
    doctor_id: uuid.UUID,
    hospital_id: uuid.UUID,
    target_date: date,
    slot: timedelta,
) -> List[dict]:
    """Unbooked slot start times for the doctor at the hospital on one (UTC) day."""
    day_start = datetime.combine(target_date, time.min)
    day_end = day_start + timedelta(days=1)

    windows = db.query(models.Availability).filter(
        models.Availability.doctor_id == doctor_id,
        models.Availability.hospital_id == hospital_id,
        models.Availability.start_time < day_end,
        models.Availability.end_time > day_start,
    ).order_by(models.Availability.start_time).all()
    if not windows:
        return []

    booked = {
        row.appointment_time
        for row in db.query(models.Appointment.appointment_time).filter(
            models.Appointment.doctor_id == doctor_id,
            models.Appointment.hospital_id == hospital_id,
            models.Appointment.appointment_time >= day_start,
            models.Appointment.appointment_time < day_end,
        )
    }

    slots = []
    for window in windows:
        for slot_start in iter_window_slots(window.start_time, window.end_time, slot):
            if day_start <= slot_start < day_end and slot_start not in booked:
                slots.append({
                    "availability_id": window.id,
                    "start_time": slot_start,
                    "end_time": slot_start + slot,
                })
    return slots
