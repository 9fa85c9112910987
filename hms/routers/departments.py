# hms/routers/departments.py
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from .. import crud, schemas, security, models
from ..database import get_db

router = APIRouter(
    prefix="/departments",
    tags=["Departments"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=List[schemas.DepartmentResponse])
def read_departments(db: Session = Depends(get_db), current_user: models.User = Depends(security.get_current_user)):
    return crud.get_departments(db)


@router.get("/unique-names", response_model=List[schemas.DepartmentNameGroup])
def read_department_names(db: Session = Depends(get_db), current_user: models.User = Depends(security.get_current_user)):
    """Department names across all hospitals, with the hospitals that have each one."""
    return crud.get_department_name_groups(db)


@router.get("/hospital/{hospital_id}", response_model=List[schemas.DepartmentResponse])
def read_hospital_departments(
    hospital_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    crud.require_hospital(db, hospital_id)
    return crud.get_departments(db, hospital_id=hospital_id)


@router.post("", response_model=schemas.DepartmentResponse, status_code=status.HTTP_201_CREATED)
def create_department(
    department: schemas.DepartmentCreate,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin),
):
    return crud.create_department(db, department)


@router.get("/{department_id}", response_model=schemas.DepartmentResponse)
def read_department(
    department_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(security.get_current_user),
):
    db_department = crud.get_department(db, department_id)
    if db_department is None:
        raise HTTPException(status_code=404, detail="Department not found")
    return db_department


@router.put("/{department_id}", response_model=schemas.DepartmentResponse)
def update_department(
    department_id: uuid.UUID,
    department_update: schemas.DepartmentUpdate,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin),
):
    db_department = crud.get_department(db, department_id)
    if db_department is None:
        raise HTTPException(status_code=404, detail="Department not found")
    return crud.update_department(db, db_department, department_update)


@router.delete("/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_department(
    department_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(security.require_admin),
):
    db_department = crud.get_department(db, department_id)
    if db_department is None:
        raise HTTPException(status_code=404, detail="Department not found")
    crud.delete_department(db, db_department)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
