"""Patient table definition using SQLAlchemy Core.

Rows are maintained by the patient registry; the appointment core only reads
names and contact details from here.
"""

from sqlalchemy import Column, String, Table, Text, Uuid

from medpulse.models.appointments import metadata

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("name", Text, nullable=False),
    Column("phone", String(20), nullable=False, server_default=""),
    Column("email", String(255), nullable=False, server_default=""),
)
