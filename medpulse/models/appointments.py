"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    MetaData,
    Table,
    Text,
    Uuid,
    false,
)

# Metadata for all tables
metadata = MetaData()

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True),
    # References (patients and staff are owned by the registry)
    Column("patient_id", Uuid, nullable=False),
    Column("assigned_staff_id", Uuid, nullable=True),
    # Clinic wall-clock time, stored without offset
    Column("date_time", DateTime(timezone=False), nullable=False),
    Column("type", Text, nullable=False),
    # Verification
    Column("status", Text, nullable=False, server_default="pending"),
    Column("is_verified", Boolean, nullable=False, server_default=false()),
    Column("original_suggested_time", DateTime(timezone=False), nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'scheduled', 'completed', 'cancelled', 'rejected')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "status != 'scheduled' OR (assigned_staff_id IS NOT NULL AND is_verified)",
        name="appointments_scheduled_verified_check",
    ),
    Index("idx_appointments_staff_status", "assigned_staff_id", "status"),
    Index("idx_appointments_patient", "patient_id"),
)
