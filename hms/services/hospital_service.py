# hms/services/hospital_service.py
import logging
from typing import Dict

from sqlalchemy.orm import Session

from .. import crud, models

logger = logging.getLogger(__name__)


def count_dependencies(db: Session, hospital_id) -> Dict[str, int]:
    return {
        "departments": db.query(models.Department).filter(models.Department.hospital_id == hospital_id).count(),
        "doctor_associations": db.query(models.DoctorHospital).filter(models.DoctorHospital.hospital_id == hospital_id).count(),
        "appointments": db.query(models.Appointment).filter(models.Appointment.hospital_id == hospital_id).count(),
        "availability": db.query(models.Availability).filter(models.Availability.hospital_id == hospital_id).count(),
    }


def safe_delete_hospital(db: Session, hospital: models.Hospital) -> None:
    """Delete the hospital only when nothing references it."""
    dependencies = count_dependencies(db, hospital.id)
    if any(dependencies.values()):
        logger.info(f"Refused to delete hospital {hospital.id}: {dependencies}")
        raise crud.ConflictError(
            "Cannot delete hospital with dependent records; use force delete to remove them as well",
            dependencies=dependencies,
        )
    db.delete(hospital)
    db.commit()
    logger.info(f"Hospital {hospital.id} deleted")


def force_delete_hospital(db: Session, hospital: models.Hospital) -> Dict[str, int]:
    """Delete the hospital and everything that references it in one transaction."""
    hospital_id = hospital.id
    try:
        deleted = {
            "appointments": db.query(models.Appointment).filter(
                models.Appointment.hospital_id == hospital_id
            ).delete(synchronize_session=False),
            "availability": db.query(models.Availability).filter(
                models.Availability.hospital_id == hospital_id
            ).delete(synchronize_session=False),
            "doctor_associations": db.query(models.DoctorHospital).filter(
                models.DoctorHospital.hospital_id == hospital_id
            ).delete(synchronize_session=False),
            "departments": db.query(models.Department).filter(
                models.Department.hospital_id == hospital_id
            ).delete(synchronize_session=False),
        }
        db.query(models.Hospital).filter(models.Hospital.id == hospital_id).delete(synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Force delete of hospital {hospital_id} rolled back")
        raise
    # Objects loaded before the bulk deletes are stale now
    db.expunge_all()
    logger.warning(f"Hospital {hospital_id} force-deleted with dependents: {deleted}")
    return deleted
