"""Session records table using SQLAlchemy Core."""

from sqlalchemy import Column, Date, DateTime, Table, Text, Uuid

from medpulse.models.appointments import metadata

session_records = Table(
    "session_records",
    metadata,
    Column("id", Uuid, primary_key=True),
    # One record per appointment
    Column("appointment_id", Uuid, nullable=False, unique=True),
    Column("patient_id", Uuid, nullable=False, index=True),
    Column("doctor_id", Uuid, nullable=False, index=True),
    Column("treatment_type", Text, nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False),
    # Clinical notes, exposed to patients per visibility settings
    Column("summary", Text, nullable=False, server_default=""),
    Column("results", Text, nullable=False, server_default=""),
    Column("care_instructions", Text, nullable=False, server_default=""),
    Column("next_session_date", Date, nullable=True),
)
