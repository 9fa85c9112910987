"""initial hospital management schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('hospital_admin', 'doctor', 'patient', name='user_role')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password', sa.String(255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('gender', sa.String(20), nullable=True),
        sa.Column('dob', sa.Date(), nullable=True),
        sa.Column('unique_id', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('idx_users_role', 'users', ['role'])

    op.create_table(
        'hospitals',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('location', sa.String(500), nullable=False),
        sa.Column('created_by', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'departments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('hospital_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['hospital_id'], ['hospitals.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', 'hospital_id', name='uq_department_name_hospital'),
    )
    op.create_index('ix_departments_hospital_id', 'departments', ['hospital_id'])

    op.create_table(
        'doctor_profiles',
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('qualifications', sa.String(500), nullable=False),
        sa.Column('specializations', sa.JSON(), nullable=False),
        sa.Column('experience', sa.Integer(), nullable=False),
        sa.CheckConstraint('experience >= 0', name='ck_doctor_profile_experience'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id'),
    )

    op.create_table(
        'doctor_hospital',
        sa.Column('doctor_id', sa.Uuid(), nullable=False),
        sa.Column('hospital_id', sa.Uuid(), nullable=False),
        sa.Column('consultation_fee', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('consultation_fee > 0', name='ck_doctor_hospital_fee'),
        sa.ForeignKeyConstraint(['doctor_id'], ['users.id']),
        sa.ForeignKeyConstraint(['hospital_id'], ['hospitals.id']),
        sa.PrimaryKeyConstraint('doctor_id', 'hospital_id'),
    )

    op.create_table(
        'availability',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), nullable=False),
        sa.Column('hospital_id', sa.Uuid(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('end_time > start_time', name='ck_availability_window'),
        sa.ForeignKeyConstraint(['doctor_id'], ['users.id']),
        sa.ForeignKeyConstraint(['hospital_id'], ['hospitals.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_availability_doctor_start', 'availability', ['doctor_id', 'start_time'])
    op.create_index('ix_availability_hospital_id', 'availability', ['hospital_id'])

    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('patient_id', sa.Uuid(), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), nullable=False),
        sa.Column('hospital_id', sa.Uuid(), nullable=False),
        sa.Column('appointment_time', sa.DateTime(), nullable=False),
        sa.Column('amount_paid', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['patient_id'], ['users.id']),
        sa.ForeignKeyConstraint(['doctor_id'], ['users.id']),
        sa.ForeignKeyConstraint(['hospital_id'], ['hospitals.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('doctor_id', 'hospital_id', 'appointment_time', name='uq_appointment_slot'),
    )
    op.create_index('idx_appointments_patient_time', 'appointments', ['patient_id', 'appointment_time'])
    op.create_index('idx_appointments_hospital', 'appointments', ['hospital_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('appointments')
    op.drop_table('availability')
    op.drop_table('doctor_hospital')
    op.drop_table('doctor_profiles')
    op.drop_table('departments')
    op.drop_table('hospitals')
    op.drop_table('users')
    user_role.drop(op.get_bind(), checkfirst=True)
