from crm.models.contact import Contact
from crm.models.opportunity import Opportunity
from crm.models.deal import Deal
from crm.models.session import ContactSession
from crm.models.feedback import Feedback
from crm.models.status_history import StatusHistory
from crm.models.notification import Notification
from crm.models.dispatch import DispatchFailure

__all__ = [
    "Contact", "Opportunity", "Deal", "ContactSession", "Feedback",
    "StatusHistory", "Notification", "DispatchFailure",
]
