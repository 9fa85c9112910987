# hms/crud.py
import logging
import uuid
from collections import OrderedDict
from typing import Optional, List, Dict, Any

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from . import models, schemas
from .security import get_password_hash

logger = logging.getLogger(__name__)


class CRUDError(Exception):
    """Domain error carrying the HTTP status and any structured detail for the caller."""
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra


class ValidationError(CRUDError):
    status_code = 400


class NotFoundError(CRUDError):
    status_code = 404


class ConflictError(CRUDError):
    status_code = 409


class BookingError(CRUDError):
    status_code = 400


# ==================== USER CRUD OPERATIONS ====================

def get_user(db: Session, user_id: uuid.UUID) -> Optional[models.User]:
    return db.query(models.User).options(
        joinedload(models.User.doctor_profile)
    ).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(func.lower(models.User.email) == email.lower()).first()


def get_users(db: Session, role: Optional[models.UserRole] = None, skip: int = 0, limit: int = 100) -> List[models.User]:
    query = db.query(models.User).options(joinedload(models.User.doctor_profile))
    if role is not None:
        query = query.filter(models.User.role == role)
    return query.order_by(models.User.name).offset(skip).limit(limit).all()


def require_user(db: Session, user_id: uuid.UUID, role: Optional[models.UserRole] = None) -> models.User:
    user = get_user(db, user_id)
    if user is None or (role is not None and user.role != role):
        label = role.value.replace("_", " ").capitalize() if role else "User"
        raise NotFoundError(f"{label} not found")
    return user


def _apply_doctor_profile(db_user: models.User, fields: schemas.DoctorProfileFields, creating: bool):
    """Create or update the doctor profile from the optional profile fields."""
    profile = db_user.doctor_profile
    if profile is None:
        # A new profile needs all three fields
        if fields.qualifications and fields.specializations and fields.experience is not None:
            db_user.doctor_profile = models.DoctorProfile(
                qualifications=fields.qualifications,
                specializations=list(fields.specializations),
                experience=fields.experience,
            )
        elif not creating and (fields.qualifications or fields.specializations or fields.experience is not None):
            raise ValidationError("qualifications, specializations and experience are required to create a doctor profile")
        return
    if fields.qualifications is not None:
        profile.qualifications = fields.qualifications
    if fields.specializations is not None:
        profile.specializations = list(fields.specializations)
    if fields.experience is not None:
        profile.experience = fields.experience


def create_user(db: Session, user: schemas.UserCreate) -> models.User:
    if get_user_by_email(db, user.email):
        raise ValidationError("User with this email already exists")

    db_user = models.User(
        name=user.name.strip(),
        email=user.email.lower(),
        password=get_password_hash(user.password),
        role=user.role,
        gender=user.gender,
        dob=user.dob,
    )
    if user.role == models.UserRole.doctor:
        _apply_doctor_profile(db_user, user, creating=True)
    elif user.role == models.UserRole.patient:
        db_user.unique_id = user.unique_id
    elif user.role == models.UserRole.hospital_admin:
        pass
    else:  # pragma: no cover - exhaustive over UserRole
        raise ValidationError(f"Unsupported role: {user.role}")

    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Registered {db_user.role.value} user {db_user.id}")
    return db_user


def update_user(db: Session, db_user: models.User, user_update: schemas.UserUpdate) -> models.User:
    data = user_update.model_dump(exclude_unset=True)
    if "email" in data and data["email"].lower() != db_user.email:
        if get_user_by_email(db, data["email"]):
            raise ValidationError("User with this email already exists")
        db_user.email = data["email"].lower()
    if data.get("password"):
        db_user.password = get_password_hash(data["password"])
    for field in ("name", "gender", "dob"):
        if field in data:
            setattr(db_user, field, data[field])
    if "unique_id" in data:
        if db_user.role != models.UserRole.patient and data["unique_id"] is not None:
            raise ValidationError("unique_id is only recorded for patients")
        db_user.unique_id = data["unique_id"]

    profile_fields = {"qualifications", "specializations", "experience"} & data.keys()
    if profile_fields:
        if db_user.role != models.UserRole.doctor:
            raise ValidationError("Doctor profile fields are only accepted for doctors")
        _apply_doctor_profile(db_user, user_update, creating=False)

    db.commit()
    db.refresh(db_user)
    return db_user


def count_user_dependencies(db: Session, user_id: uuid.UUID) -> Dict[str, int]:
    return {
        "hospitals": db.query(models.Hospital).filter(models.Hospital.created_by == user_id).count(),
        "doctor_associations": db.query(models.DoctorHospital).filter(models.DoctorHospital.doctor_id == user_id).count(),
        "availability": db.query(models.Availability).filter(models.Availability.doctor_id == user_id).count(),
        "appointments": db.query(models.Appointment).filter(
            (models.Appointment.patient_id == user_id) | (models.Appointment.doctor_id == user_id)
        ).count(),
    }


def delete_user(db: Session, db_user: models.User) -> None:
    dependencies = count_user_dependencies(db, db_user.id)
    if any(dependencies.values()):
        raise ConflictError("User has dependent records", dependencies=dependencies)
    db.delete(db_user)
    db.commit()
    logger.info(f"User {db_user.id} deleted")


# ==================== HOSPITAL CRUD OPERATIONS ====================

def get_hospital(db: Session, hospital_id: uuid.UUID) -> Optional[models.Hospital]:
    return db.query(models.Hospital).options(
        selectinload(models.Hospital.departments)
    ).filter(models.Hospital.id == hospital_id).first()


def get_hospital_by_name(db: Session, name: str) -> Optional[models.Hospital]:
    return db.query(models.Hospital).filter(func.lower(models.Hospital.name) == name.strip().lower()).first()


def get_hospitals(db: Session) -> List[models.Hospital]:
    return db.query(models.Hospital).options(
        selectinload(models.Hospital.departments)
    ).order_by(models.Hospital.name).all()


def require_hospital(db: Session, hospital_id: uuid.UUID) -> models.Hospital:
    hospital = get_hospital(db, hospital_id)
    if hospital is None:
        raise NotFoundError("Hospital not found")
    return hospital


def create_hospital(db: Session, hospital: schemas.HospitalCreate, created_by: uuid.UUID) -> models.Hospital:
    if get_hospital_by_name(db, hospital.name):
        raise ConflictError("Hospital with this name already exists")
    db_hospital = models.Hospital(name=hospital.name, location=hospital.location, created_by=created_by)
    db.add(db_hospital)
    db.commit()
    db.refresh(db_hospital)
    return db_hospital


def update_hospital(db: Session, db_hospital: models.Hospital, hospital_update: schemas.HospitalUpdate) -> models.Hospital:
    data = hospital_update.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in data:
        existing = get_hospital_by_name(db, data["name"])
        if existing and existing.id != db_hospital.id:
            raise ConflictError("Hospital with this name already exists")
    for key, value in data.items():
        setattr(db_hospital, key, value)
    db.commit()
    db.refresh(db_hospital)
    return db_hospital


# ==================== DEPARTMENT CRUD OPERATIONS ====================

def get_department(db: Session, department_id: uuid.UUID) -> Optional[models.Department]:
    return db.query(models.Department).options(
        joinedload(models.Department.hospital)
    ).filter(models.Department.id == department_id).first()


def get_departments(db: Session, hospital_id: Optional[uuid.UUID] = None) -> List[models.Department]:
    query = db.query(models.Department).options(joinedload(models.Department.hospital))
    if hospital_id is not None:
        query = query.filter(models.Department.hospital_id == hospital_id)
    return query.order_by(models.Department.name).all()


def _normalize_department_name(name: Optional[str]) -> str:
    normalized = (name or "").strip()
    if not normalized:
        raise ValidationError("Department name is required")
    return normalized


def _ensure_department_name_free(db: Session, name: str, hospital_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None):
    query = db.query(models.Department).filter(
        models.Department.name == name,
        models.Department.hospital_id == hospital_id,
    )
    if exclude_id is not None:
        query = query.filter(models.Department.id != exclude_id)
    if query.first():
        raise ConflictError("Department with this name already exists in this hospital")


def create_department(db: Session, department: schemas.DepartmentCreate) -> models.Department:
    name = _normalize_department_name(department.name)
    require_hospital(db, department.hospital_id)
    _ensure_department_name_free(db, name, department.hospital_id)

    db_department = models.Department(name=name, hospital_id=department.hospital_id)
    db.add(db_department)
    db.commit()
    db.refresh(db_department)
    return db_department


def update_department(db: Session, db_department: models.Department, department_update: schemas.DepartmentUpdate) -> models.Department:
    data = department_update.model_dump(exclude_unset=True, exclude_none=True)
    name = _normalize_department_name(data["name"]) if "name" in data else db_department.name
    hospital_id = data.get("hospital_id", db_department.hospital_id)
    if hospital_id != db_department.hospital_id:
        require_hospital(db, hospital_id)
    _ensure_department_name_free(db, name, hospital_id, exclude_id=db_department.id)

    db_department.name = name
    db_department.hospital_id = hospital_id
    db.commit()
    db.refresh(db_department)
    return db_department


def delete_department(db: Session, db_department: models.Department) -> None:
    db.delete(db_department)
    db.commit()


def get_department_name_groups(db: Session) -> List[Dict[str, Any]]:
    """Group departments by name across all hospitals."""
    rows = db.query(models.Department, models.Hospital).join(
        models.Hospital, models.Department.hospital_id == models.Hospital.id
    ).order_by(models.Department.name, models.Hospital.name).all()

    groups: "OrderedDict[str, List[models.Hospital]]" = OrderedDict()
    for department, hospital in rows:
        groups.setdefault(department.name, []).append(hospital)
    return [
        {"name": name, "hospital_count": len(hospitals), "hospitals": hospitals}
        for name, hospitals in groups.items()
    ]


# ==================== DOCTOR-HOSPITAL CRUD OPERATIONS ====================

def get_doctor_hospital(db: Session, doctor_id: uuid.UUID, hospital_id: uuid.UUID) -> Optional[models.DoctorHospital]:
    return db.query(models.DoctorHospital).filter(
        models.DoctorHospital.doctor_id == doctor_id,
        models.DoctorHospital.hospital_id == hospital_id,
    ).first()


def get_doctor_hospitals(db: Session, doctor_id: uuid.UUID) -> List[models.DoctorHospital]:
    return db.query(models.DoctorHospital).options(
        joinedload(models.DoctorHospital.hospital)
    ).filter(models.DoctorHospital.doctor_id == doctor_id).all()


def get_hospital_doctor_links(db: Session, hospital_id: uuid.UUID) -> List[models.DoctorHospital]:
    return db.query(models.DoctorHospital).options(
        joinedload(models.DoctorHospital.doctor).joinedload(models.User.doctor_profile)
    ).filter(models.DoctorHospital.hospital_id == hospital_id).all()


def associate_doctor_with_hospital(db: Session, doctor_id: uuid.UUID, link: schemas.DoctorHospitalCreate) -> models.DoctorHospital:
    require_user(db, doctor_id, role=models.UserRole.doctor)
    require_hospital(db, link.hospital_id)
    if get_doctor_hospital(db, doctor_id, link.hospital_id):
        raise ConflictError("Doctor already associated with this hospital")

    db_link = models.DoctorHospital(
        doctor_id=doctor_id,
        hospital_id=link.hospital_id,
        consultation_fee=link.consultation_fee,
    )
    db.add(db_link)
    db.commit()
    db.refresh(db_link)
    logger.info(f"Doctor {doctor_id} associated with hospital {link.hospital_id} (fee {link.consultation_fee})")
    return db_link


def update_consultation_fee(db: Session, doctor_id: uuid.UUID, fee_update: schemas.ConsultationFeeUpdate) -> models.DoctorHospital:
    db_link = get_doctor_hospital(db, doctor_id, fee_update.hospital_id)
    if db_link is None:
        raise NotFoundError("Doctor-hospital association not found")
    db_link.consultation_fee = fee_update.consultation_fee
    db.commit()
    db.refresh(db_link)
    return db_link


# ==================== AVAILABILITY CRUD OPERATIONS ====================

def get_availability(db: Session, availability_id: uuid.UUID) -> Optional[models.Availability]:
    return db.query(models.Availability).options(
        joinedload(models.Availability.hospital)
    ).filter(models.Availability.id == availability_id).first()


def get_availability_list(
    db: Session,
    doctor_id: Optional[uuid.UUID] = None,
    hospital_id: Optional[uuid.UUID] = None,
) -> List[models.Availability]:
    query = db.query(models.Availability).options(joinedload(models.Availability.hospital))
    if doctor_id is not None:
        query = query.filter(models.Availability.doctor_id == doctor_id)
    if hospital_id is not None:
        query = query.filter(models.Availability.hospital_id == hospital_id)
    return query.order_by(models.Availability.start_time).all()


def delete_availability(db: Session, db_availability: models.Availability) -> None:
    db.delete(db_availability)
    db.commit()


# ==================== APPOINTMENT CRUD OPERATIONS ====================

def _appointment_query(db: Session):
    return db.query(models.Appointment).options(
        joinedload(models.Appointment.patient),
        joinedload(models.Appointment.doctor),
        joinedload(models.Appointment.hospital),
    )


def get_appointment(db: Session, appointment_id: uuid.UUID) -> Optional[models.Appointment]:
    return _appointment_query(db).filter(models.Appointment.id == appointment_id).first()


def get_appointments(
    db: Session,
    patient_id: Optional[uuid.UUID] = None,
    doctor_id: Optional[uuid.UUID] = None,
    hospital_id: Optional[uuid.UUID] = None,
) -> List[models.Appointment]:
    query = _appointment_query(db)
    if patient_id is not None:
        query = query.filter(models.Appointment.patient_id == patient_id)
    if doctor_id is not None:
        query = query.filter(models.Appointment.doctor_id == doctor_id)
    if hospital_id is not None:
        query = query.filter(models.Appointment.hospital_id == hospital_id)
    return query.order_by(models.Appointment.appointment_time.desc()).all()


def delete_appointment(db: Session, db_appointment: models.Appointment) -> None:
    db.delete(db_appointment)
    db.commit()
