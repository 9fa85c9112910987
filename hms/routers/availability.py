# hms/routers/availability.py
import uuid
from datetime import date, timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from .. import crud, schemas, security, models
from ..database import get_db
from ..services import availability_service

router = APIRouter(
    prefix="/availability",
    tags=["Availability"],
    responses={404: {"description": "Not found"}},
)


def _get_availability_or_404(db: Session, availability_id: uuid.UUID) -> models.Availability:
    db_availability = crud.get_availability(db, availability_id)
    if db_availability is None:
        raise HTTPException(status_code=404, detail="Availability not found")
    return db_availability


@router.get("", response_model=List[schemas.AvailabilityResponse])
def read_all_availability(db: Session = Depends(get_db), current_user: models.User = Depends(security.get_current_user)):
    return crud.get_availability_list(db)


@router.get("/doctor/{doctor_id}", response_model=List[schemas.AvailabilityResponse])
def read_doctor_availability(
    doctor_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    return crud.get_availability_list(db, doctor_id=doctor_id)


@router.get("/hospital/{hospital_id}", response_model=List[schemas.AvailabilityResponse])
def read_hospital_availability(
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    return crud.get_availability_list(db, hospital_id=hospital_id)


@router.get("/doctor/{doctor_id}/hospital/{hospital_id}", response_model=List[schemas.AvailabilityResponse])
def read_doctor_hospital_availability(
    doctor_id: uuid.UUID,
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    return crud.get_availability_list(db, doctor_id=doctor_id, hospital_id=hospital_id)


@router.get("/available/{doctor_id}/{hospital_id}/{target_date}", response_model=List[schemas.AvailableSlot])
def read_free_slots(
    request: Request,
    doctor_id: uuid.UUID,
    hospital_id: uuid.UUID,
    target_date: date,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    """
    Bookable slot start times for a doctor at a hospital on one UTC day.
    Windows are cut into consultation slots and already-booked slots are left out.
    """
    crud.require_user(db, doctor_id, role=models.UserRole.doctor)
    crud.require_hospital(db, hospital_id)
    slot = timedelta(minutes=request.app.state.settings.appointment_slot_minutes)
    return availability_service.get_free_slots(db, doctor_id, hospital_id, target_date, slot)


@router.post("", response_model=schemas.AvailabilityResponse, status_code=status.HTTP_201_CREATED)
def create_availability(
    availability: schemas.AvailabilityCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    security.ensure_self_or_admin(current_user, availability.doctor_id, action="manage this doctor's availability")
    return availability_service.create_availability(db, availability)


@router.get("/{availability_id}", response_model=schemas.AvailabilityResponse)
def read_availability(
    availability_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    return _get_availability_or_404(db, availability_id)


@router.put("/{availability_id}", response_model=schemas.AvailabilityResponse)
def update_availability(
    availability_id: uuid.UUID,
    availability_update: schemas.AvailabilityUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    db_availability = _get_availability_or_404(db, availability_id)
    security.ensure_self_or_admin(current_user, db_availability.doctor_id, action="manage this doctor's availability")
    return availability_service.update_availability(db, db_availability, availability_update)


@router.delete("/{availability_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_availability(
    availability_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    db_availability = _get_availability_or_404(db, availability_id)
    security.ensure_self_or_admin(current_user, db_availability.doctor_id, action="manage this doctor's availability")
    crud.delete_availability(db, db_availability)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
