# hms/routers/appointments.py
import uuid
from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from .. import crud, schemas, security, models
from ..database import get_db
from ..services import appointment_service

router = APIRouter(
    prefix="/appointments",
    tags=["Appointments"],
    responses={404: {"description": "Not found"}},
)


def _slot_length(request: Request) -> timedelta:
    return timedelta(minutes=request.app.state.settings.appointment_slot_minutes)


def _get_appointment_or_404(db: Session, appointment_id: uuid.UUID) -> models.Appointment:
    db_appointment = crud.get_appointment(db, appointment_id)
    if db_appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return db_appointment


def _ensure_participant_or_admin(current_user: models.User, db_appointment: models.Appointment):
    if current_user.role == models.UserRole.hospital_admin:
        return
    if current_user.id in (db_appointment.patient_id, db_appointment.doctor_id):
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You do not have permission to modify this appointment",
    )


@router.get("", response_model=List[schemas.AppointmentResponse])
def read_appointments(db: Session = Depends(get_db), current_user: models.User = Depends(security.get_current_user)):
    return crud.get_appointments(db)


@router.get("/patient/{patient_id}", response_model=List[schemas.AppointmentResponse])
def read_patient_appointments(
    patient_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    return crud.get_appointments(db, patient_id=patient_id)


@router.get("/doctor/{doctor_id}", response_model=List[schemas.AppointmentResponse])
def read_doctor_appointments(
    doctor_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    return crud.get_appointments(db, doctor_id=doctor_id)


@router.get("/hospital/{hospital_id}", response_model=List[schemas.AppointmentResponse])
def read_hospital_appointments(
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    return crud.get_appointments(db, hospital_id=hospital_id)


@router.post("", response_model=schemas.AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    request: Request,
    appointment: schemas.AppointmentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    security.ensure_self_or_admin(current_user, appointment.patient_id, action="book for this patient")
    return appointment_service.book_appointment(db, appointment, _slot_length(request))


@router.get("/{appointment_id}", response_model=schemas.AppointmentResponse)
def read_appointment(
    appointment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    return _get_appointment_or_404(db, appointment_id)


@router.put("/{appointment_id}", response_model=schemas.AppointmentResponse)
def reschedule_appointment(
    request: Request,
    appointment_id: uuid.UUID,
    appointment_update: schemas.AppointmentUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    db_appointment = _get_appointment_or_404(db, appointment_id)
    _ensure_participant_or_admin(current_user, db_appointment)
    return appointment_service.reschedule_appointment(db, db_appointment, appointment_update, _slot_length(request))


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_appointment(
    appointment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    db_appointment = _get_appointment_or_404(db, appointment_id)
    _ensure_participant_or_admin(current_user, db_appointment)
    crud.delete_appointment(db, db_appointment)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
