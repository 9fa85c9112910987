# hms/schemas.py
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from typing import Annotated, List, Optional, Dict

from pydantic import BaseModel, Field, EmailStr, StringConstraints, field_validator

from .models import UserRole

# Surrounding whitespace is stripped before the length checks run
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
Location = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC; aware input is converted first."""
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# --- Base Schemas ---
class BaseSchema(BaseModel):
    class Config:
        from_attributes = True


# --- User Schemas ---
class DoctorProfileFields(BaseSchema):
    qualifications: Optional[str] = Field(None, max_length=500)
    specializations: Optional[List[str]] = None
    experience: Optional[int] = Field(None, ge=0)

    @field_validator("specializations")
    @classmethod
    def strip_specializations(cls, v):
        if v is None:
            return v
        return [s.strip() for s in v if s and s.strip()]


class UserBase(BaseSchema):
    name: Name
    email: EmailStr
    gender: Optional[str] = Field(None, max_length=20)
    dob: Optional[date] = None
    unique_id: Optional[str] = Field(None, max_length=64)


class UserCreate(UserBase, DoctorProfileFields):
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.patient


class UserUpdate(DoctorProfileFields):
    name: Optional[Name] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    gender: Optional[str] = Field(None, max_length=20)
    dob: Optional[date] = None
    unique_id: Optional[str] = Field(None, max_length=64)

    @field_validator("name", "email", "password")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class DoctorProfileResponse(BaseSchema):
    qualifications: str
    specializations: List[str] = []
    experience: int


class UserBrief(BaseSchema):
    id: uuid.UUID
    name: str
    email: EmailStr
    role: UserRole


class UserResponse(UserBase):
    id: uuid.UUID
    role: UserRole
    created_at: datetime
    doctor_profile: Optional[DoctorProfileResponse] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# --- Hospital Schemas ---
class HospitalBrief(BaseSchema):
    id: uuid.UUID
    name: str
    location: str


class DepartmentBrief(BaseSchema):
    id: uuid.UUID
    name: str


class HospitalCreate(BaseSchema):
    name: Name
    location: Location


class HospitalUpdate(BaseSchema):
    name: Optional[Name] = None
    location: Optional[Location] = None


class HospitalResponse(HospitalBrief):
    created_by: uuid.UUID
    created_at: datetime
    departments: List[DepartmentBrief] = []


class HospitalDashboard(BaseModel):
    hospital_id: uuid.UUID
    total_consultations: int
    total_revenue: float
    associated_doctors: int
    departments_count: int


class HospitalRevenue(BaseModel):
    hospital_id: uuid.UUID
    total_revenue: float
    total_consultations: int


class DoctorRevenueRow(BaseModel):
    doctor_id: uuid.UUID
    doctor_name: str
    revenue: float
    consultations: int


class DepartmentRevenueRow(BaseModel):
    department_id: Optional[uuid.UUID] = None
    department_name: str
    revenue: float
    consultations: int


class HospitalForceDeleteReport(BaseModel):
    hospital_id: uuid.UUID
    deleted: Dict[str, int]


# --- Department Schemas ---
class DepartmentCreate(BaseSchema):
    name: str = Field(..., max_length=255)
    hospital_id: uuid.UUID


class DepartmentUpdate(BaseSchema):
    name: Optional[str] = Field(None, max_length=255)
    hospital_id: Optional[uuid.UUID] = None


class DepartmentResponse(BaseSchema):
    id: uuid.UUID
    name: str
    hospital_id: uuid.UUID
    created_at: datetime
    hospital: Optional[HospitalBrief] = None


class DepartmentNameGroup(BaseModel):
    name: str
    hospital_count: int
    hospitals: List[HospitalBrief]


# --- Doctor Schemas ---
class DoctorHospitalCreate(BaseSchema):
    hospital_id: uuid.UUID
    consultation_fee: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class ConsultationFeeUpdate(DoctorHospitalCreate):
    pass


class DoctorHospitalResponse(BaseSchema):
    doctor_id: uuid.UUID
    hospital_id: uuid.UUID
    consultation_fee: float
    created_at: datetime
    hospital: Optional[HospitalBrief] = None


class HospitalDoctorResponse(UserResponse):
    consultation_fee: float


class HospitalEarningsRow(BaseModel):
    hospital_id: uuid.UUID
    hospital_name: str
    earnings: float
    consultations: int


class MonthlyEarningsRow(BaseModel):
    month: str  # YYYY-MM
    earnings: float
    consultations: int


class DoctorEarnings(BaseModel):
    doctor_id: uuid.UUID
    total_earnings: float
    total_consultations: int
    earnings_by_hospital: List[HospitalEarningsRow]
    earnings_by_month: List[MonthlyEarningsRow]


class DoctorSummary(BaseModel):
    id: uuid.UUID
    name: str
    email: EmailStr
    specializations: List[str]
    qualifications: str
    experience: int


class DoctorStatistics(BaseModel):
    total_consultations: int
    total_earnings: float
    associated_hospitals: int


class RecentAppointment(BaseModel):
    id: uuid.UUID
    appointment_time: datetime
    amount_paid: float
    hospital_name: Optional[str] = None
    patient_name: Optional[str] = None


class DoctorDashboard(BaseModel):
    doctor: DoctorSummary
    statistics: DoctorStatistics
    recent_appointments: List[RecentAppointment]
    monthly_earnings: List[MonthlyEarningsRow]


# --- Availability Schemas ---
class AvailabilityCreate(BaseSchema):
    doctor_id: uuid.UUID
    hospital_id: uuid.UUID
    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time")
    @classmethod
    def to_naive_utc(cls, v):
        return naive_utc(v)


class AvailabilityUpdate(BaseSchema):
    hospital_id: Optional[uuid.UUID] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_naive_utc(cls, v):
        return naive_utc(v)


class AvailabilityResponse(BaseSchema):
    id: uuid.UUID
    doctor_id: uuid.UUID
    hospital_id: uuid.UUID
    start_time: datetime
    end_time: datetime
    created_at: datetime
    hospital: Optional[HospitalBrief] = None


class AvailableSlot(BaseModel):
    availability_id: uuid.UUID
    start_time: datetime
    end_time: datetime


# --- Appointment Schemas ---
class AppointmentCreate(BaseSchema):
    patient_id: uuid.UUID
    doctor_id: uuid.UUID
    hospital_id: uuid.UUID
    appointment_time: datetime
    amount_paid: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)

    @field_validator("appointment_time")
    @classmethod
    def to_naive_utc(cls, v):
        return naive_utc(v)


class AppointmentUpdate(BaseSchema):
    doctor_id: Optional[uuid.UUID] = None
    hospital_id: Optional[uuid.UUID] = None
    appointment_time: Optional[datetime] = None
    amount_paid: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)

    @field_validator("appointment_time")
    @classmethod
    def to_naive_utc(cls, v):
        return naive_utc(v)


class AppointmentResponse(BaseSchema):
    id: uuid.UUID
    patient_id: uuid.UUID
    doctor_id: uuid.UUID
    hospital_id: uuid.UUID
    appointment_time: datetime
    amount_paid: float
    created_at: datetime
    patient: Optional[UserBrief] = None
    doctor: Optional[UserBrief] = None
    hospital: Optional[HospitalBrief] = None


# --- System ---
class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: datetime
    database: str
