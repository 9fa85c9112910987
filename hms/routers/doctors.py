# hms/routers/doctors.py
import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, schemas, security, models
from ..database import get_db
from ..services import revenue_service

router = APIRouter(
    prefix="/doctors",
    tags=["Doctors"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=List[schemas.UserResponse])
def read_doctors(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    return crud.get_users(db, role=models.UserRole.doctor, skip=skip, limit=limit)


@router.get("/{doctor_id}", response_model=schemas.UserResponse)
def read_doctor(
    doctor_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    return crud.require_user(db, doctor_id, role=models.UserRole.doctor)


@router.get("/{doctor_id}/hospitals", response_model=List[schemas.DoctorHospitalResponse])
def read_doctor_hospitals(
    doctor_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    crud.require_user(db, doctor_id, role=models.UserRole.doctor)
    return crud.get_doctor_hospitals(db, doctor_id)


@router.post(
    "/{doctor_id}/associate-hospital",
    response_model=schemas.DoctorHospitalResponse,
    status_code=status.HTTP_201_CREATED,
)
def associate_hospital(
    doctor_id: uuid.UUID,
    link: schemas.DoctorHospitalCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    security.ensure_self_or_admin(current_user, doctor_id, action="manage this doctor's hospitals")
    return crud.associate_doctor_with_hospital(db, doctor_id, link)


@router.put("/{doctor_id}/consultation-fee", response_model=schemas.DoctorHospitalResponse)
def update_consultation_fee(
    doctor_id: uuid.UUID,
    fee_update: schemas.ConsultationFeeUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    security.ensure_self_or_admin(current_user, doctor_id, action="change this doctor's fees")
    return crud.update_consultation_fee(db, doctor_id, fee_update)


@router.get("/{doctor_id}/earnings", response_model=schemas.DoctorEarnings)
def read_doctor_earnings(
    doctor_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    security.ensure_self_or_admin(current_user, doctor_id, action="view these earnings")
    crud.require_user(db, doctor_id, role=models.UserRole.doctor)
    return revenue_service.doctor_earnings(db, doctor_id)


@router.get("/{doctor_id}/dashboard", response_model=schemas.DoctorDashboard)
def read_doctor_dashboard(
    doctor_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    security.ensure_self_or_admin(current_user, doctor_id, action="view this dashboard")
    doctor = crud.require_user(db, doctor_id, role=models.UserRole.doctor)
    return revenue_service.doctor_dashboard(db, doctor)
