"""Notification table for patient-facing message history."""

from sqlalchemy import CheckConstraint, Column, DateTime, Index, String, Table, Text, Uuid

from medpulse.models.appointments import metadata

notifications = Table(
    "notifications",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("patient_id", Uuid, nullable=False),
    Column("appointment_id", Uuid, nullable=True),
    Column("type", String(50), nullable=False),
    Column("channel", String(20), nullable=False, server_default="whatsapp"),
    Column("content", Text, nullable=False),
    # ISO timestamp once sent, scheduling marker while deferred
    Column("sent_at", Text, nullable=False),
    Column("status", String(20), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    CheckConstraint(
        "type IN ('welcome', 'reminder_24h', 'reminder_2h', "
        "'verification_request', 'verification_confirm', 'rejection')",
        name="notifications_type_check",
    ),
    CheckConstraint(
        "channel IN ('whatsapp', 'sms')",
        name="notifications_channel_check",
    ),
    CheckConstraint(
        "status IN ('pending', 'sent')",
        name="notifications_status_check",
    ),
    Index("idx_notifications_appointment_status", "appointment_id", "status"),
    Index("idx_notifications_patient", "patient_id"),
)
