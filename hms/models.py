# hms/models.py
import enum
import uuid

from sqlalchemy import (
    Column, Integer, String, DateTime, Date, ForeignKey, Numeric, JSON, Uuid,
    Enum as SQLAlchemyEnum, Index, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class UserRole(str, enum.Enum):
    hospital_admin = "hospital_admin"
    doctor = "doctor"
    patient = "patient"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_role", "role"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(SQLAlchemyEnum(UserRole, name="user_role"), default=UserRole.patient, nullable=False)
    gender = Column(String(20), nullable=True)
    dob = Column(Date, nullable=True)
    unique_id = Column(String(64), nullable=True)  # Aadhar/Passport, patients only
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    hospitals = relationship("Hospital", back_populates="admin")
    doctor_profile = relationship(
        "DoctorProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    hospital_links = relationship("DoctorHospital", back_populates="doctor")
    patient_appointments = relationship(
        "Appointment", back_populates="patient", foreign_keys="Appointment.patient_id"
    )
    doctor_appointments = relationship(
        "Appointment", back_populates="doctor", foreign_keys="Appointment.doctor_id"
    )


class Hospital(Base):
    __tablename__ = "hospitals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), unique=True, nullable=False)
    location = Column(String(500), nullable=False)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    admin = relationship("User", back_populates="hospitals")
    departments = relationship("Department", back_populates="hospital", order_by="Department.name")
    doctor_links = relationship("DoctorHospital", back_populates="hospital")
    availability = relationship("Availability", back_populates="hospital")
    appointments = relationship("Appointment", back_populates="hospital")


class Department(Base):
    __tablename__ = "departments"
    __table_args__ = (
        UniqueConstraint("name", "hospital_id", name="uq_department_name_hospital"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    hospital_id = Column(Uuid, ForeignKey("hospitals.id"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    hospital = relationship("Hospital", back_populates="departments")


class DoctorProfile(Base):
    __tablename__ = "doctor_profiles"
    __table_args__ = (
        CheckConstraint("experience >= 0", name="ck_doctor_profile_experience"),
    )

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    qualifications = Column(String(500), nullable=False)
    specializations = Column(JSON, nullable=False, default=list)
    experience = Column(Integer, nullable=False, default=0)

    user = relationship("User", back_populates="doctor_profile")


class DoctorHospital(Base):
    __tablename__ = "doctor_hospital"
    __table_args__ = (
        CheckConstraint("consultation_fee > 0", name="ck_doctor_hospital_fee"),
    )

    doctor_id = Column(Uuid, ForeignKey("users.id"), primary_key=True)
    hospital_id = Column(Uuid, ForeignKey("hospitals.id"), primary_key=True)
    consultation_fee = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    doctor = relationship("User", back_populates="hospital_links")
    hospital = relationship("Hospital", back_populates="doctor_links")


class Availability(Base):
    __tablename__ = "availability"
    __table_args__ = (
        Index("idx_availability_doctor_start", "doctor_id", "start_time"),
        CheckConstraint("end_time > start_time", name="ck_availability_window"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    doctor_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    hospital_id = Column(Uuid, ForeignKey("hospitals.id"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    doctor = relationship("User")
    hospital = relationship("Hospital", back_populates="availability")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        UniqueConstraint("doctor_id", "hospital_id", "appointment_time", name="uq_appointment_slot"),
        Index("idx_appointments_patient_time", "patient_id", "appointment_time"),
        Index("idx_appointments_hospital", "hospital_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    doctor_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    hospital_id = Column(Uuid, ForeignKey("hospitals.id"), nullable=False)
    appointment_time = Column(DateTime, nullable=False)
    amount_paid = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    patient = relationship("User", back_populates="patient_appointments", foreign_keys=[patient_id])
    doctor = relationship("User", back_populates="doctor_appointments", foreign_keys=[doctor_id])
    hospital = relationship("Hospital", back_populates="appointments")
