"""Clinic settings table (single row)."""

from sqlalchemy import Boolean, Column, Integer, Table, false, true

from medpulse.models.appointments import metadata

SETTINGS_ROW_ID = 1

clinic_settings = Table(
    "clinic_settings",
    metadata,
    Column("id", Integer, primary_key=True),
    # Patient portal visibility gates
    Column("show_summary", Boolean, nullable=False, server_default=true()),
    Column("show_results", Boolean, nullable=False, server_default=true()),
    Column("show_care_instructions", Boolean, nullable=False, server_default=true()),
    Column("restrict_staff_logs", Boolean, nullable=False, server_default=false()),
)
