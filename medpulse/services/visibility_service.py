"""Patient-facing rendering of session records."""

from medpulse.schemas.clinic_settings import PatientVisibility
from medpulse.schemas.sessions import RESTRICTED_MARKER, PatientSessionView, SessionRecord

# Session field -> visibility gate
GATED_FIELDS = ("summary", "results", "care_instructions")


class VisibilityPolicy:
    """Applies the clinic's visibility gates to session records.

    A field whose gate is off is replaced by the restricted marker rather
    than dropped, so callers can tell "hidden" apart from "empty".
    """

    def __init__(self, visibility: PatientVisibility):
        self.visibility = visibility

    def is_visible(self, field: str) -> bool:
        return bool(getattr(self.visibility, field))

    def render(self, record: SessionRecord) -> PatientSessionView:
        values = {}
        hidden = []
        for field in GATED_FIELDS:
            if self.is_visible(field):
                values[field] = getattr(record, field)
            else:
                values[field] = RESTRICTED_MARKER
                hidden.append(field)

        return PatientSessionView(
            id=record.id,
            appointment_id=record.appointment_id,
            treatment_type=record.treatment_type,
            timestamp=record.timestamp,
            next_session_date=record.next_session_date,
            hidden_fields=hidden,
            **values,
        )

    def render_many(self, records: list[SessionRecord]) -> list[PatientSessionView]:
        return [self.render(record) for record in records]
