# hms/routers/hospitals.py
import uuid
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from .. import crud, schemas, security, models
from ..database import get_db
from ..services import hospital_service, revenue_service

router = APIRouter(
    prefix="/hospitals",
    tags=["Hospitals"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=List[schemas.HospitalResponse])
def read_hospitals(db: Session = Depends(get_db), current_user: models.User = Depends(security.get_current_user)):
    return crud.get_hospitals(db)


@router.post("", response_model=schemas.HospitalResponse, status_code=status.HTTP_201_CREATED)
def create_hospital(
    hospital: schemas.HospitalCreate,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin),
):
    return crud.create_hospital(db, hospital, created_by=current_admin.id)


@router.get("/{hospital_id}", response_model=schemas.HospitalResponse)
def read_hospital(
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    return crud.require_hospital(db, hospital_id)


@router.put("/{hospital_id}", response_model=schemas.HospitalResponse)
def update_hospital(
    hospital_id: uuid.UUID,
    hospital_update: schemas.HospitalUpdate,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin),
):
    db_hospital = crud.require_hospital(db, hospital_id)
    return crud.update_hospital(db, db_hospital, hospital_update)


@router.delete("/{hospital_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_hospital(
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin),
):
    db_hospital = crud.require_hospital(db, hospital_id)
    hospital_service.safe_delete_hospital(db, db_hospital)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{hospital_id}/force-delete", response_model=schemas.HospitalForceDeleteReport)
def force_delete_hospital(
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin),
):
    db_hospital = crud.require_hospital(db, hospital_id)
    deleted = hospital_service.force_delete_hospital(db, db_hospital)
    return {"hospital_id": hospital_id, "deleted": deleted}


@router.get("/{hospital_id}/dashboard", response_model=schemas.HospitalDashboard)
def read_hospital_dashboard(
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin),
):
    crud.require_hospital(db, hospital_id)
    return revenue_service.hospital_dashboard(db, hospital_id)


@router.get("/{hospital_id}/doctors", response_model=List[schemas.HospitalDoctorResponse])
def read_hospital_doctors(
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    crud.require_hospital(db, hospital_id)
    doctors = []
    for link in crud.get_hospital_doctor_links(db, hospital_id):
        doctor = schemas.UserResponse.model_validate(link.doctor).model_dump()
        doctor["consultation_fee"] = link.consultation_fee
        doctors.append(doctor)
    return doctors


@router.get("/{hospital_id}/revenue", response_model=schemas.HospitalRevenue)
def read_hospital_revenue(
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin),
):
    crud.require_hospital(db, hospital_id)
    return revenue_service.hospital_revenue(db, hospital_id)


@router.get("/{hospital_id}/revenue/doctors", response_model=List[schemas.DoctorRevenueRow])
def read_revenue_by_doctor(
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin),
):
    crud.require_hospital(db, hospital_id)
    return revenue_service.revenue_by_doctor(db, hospital_id)


@router.get("/{hospital_id}/revenue/departments", response_model=List[schemas.DepartmentRevenueRow])
def read_revenue_by_department(
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin),
):
    crud.require_hospital(db, hospital_id)
    return revenue_service.revenue_by_department(db, hospital_id)
