"""Signal aggregator - derived scalars over the session and feedback streams.

Read-only. A stream with no ratings averages to 0.0, which is below every
threshold.
"""

import uuid

from sqlalchemy.orm import Session

from crm.config import Settings, settings as default_settings
from crm.lifecycle.states import ContactStatus, Temperature
from crm.models import Contact
from crm.repositories import feedback as feedback_repo
from crm.repositories import sessions as sessions_repo


class SignalAggregator:
    def __init__(self, settings: Settings = default_settings):
        self.settings = settings

    def temperature_for(self, avg_rating: float) -> Temperature:
        if avg_rating >= self.settings.temperature_hot_min:
            return Temperature.HOT
        if avg_rating >= self.settings.temperature_warm_min:
            return Temperature.WARM
        return Temperature.COLD

    def average_session_rating(self, session: Session, contact_id: uuid.UUID) -> float:
        return sessions_repo.average_rating(session, contact_id)

    def stage_qualification_rating(self, session: Session, contact_id: uuid.UUID) -> float:
        """Average rating of sessions logged while the contact was an MQL."""
        return sessions_repo.average_rating(session, contact_id, stage=ContactStatus.MQL.value)

    def evangelist_qualification_rating(self, session: Session, contact_id: uuid.UUID) -> float:
        return feedback_repo.average_rating(session, contact_id)

    def refresh_temperature(self, session: Session, contact: Contact) -> tuple[float, Temperature]:
        """Recompute and cache the contact's temperature.

        Not a pipeline change: writes no status history.
        """
        avg_rating = self.average_session_rating(session, contact.id)
        temperature = self.temperature_for(avg_rating)
        if contact.temperature != temperature.value:
            contact.temperature = temperature.value
        return avg_rating, temperature
