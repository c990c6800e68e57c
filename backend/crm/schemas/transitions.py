"""Per-transition request and result schemas.

One request model per row of the transition table. Unknown fields are
rejected at the boundary.
"""

import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from crm.lifecycle.states import ContactMode, ContactStatus, SessionStatus, Transition

_STRICT = {"extra": "forbid", "frozen": True}


class CreateContactRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    company_id: uuid.UUID
    phone: Optional[str] = Field(None, max_length=50)
    assigned_employee_id: Optional[uuid.UUID] = None
    actor_id: Optional[uuid.UUID] = None

    model_config = _STRICT


class TrackingEventRequest(BaseModel):
    """Marketing activity (email link click) reported with the contact's tracking token."""
    contact_id: uuid.UUID
    token: str = Field(..., min_length=1, max_length=64)

    model_config = _STRICT


class PromoteToMQLRequest(BaseModel):
    contact_id: uuid.UUID
    actor_id: uuid.UUID

    model_config = _STRICT


class PromoteToSQLRequest(BaseModel):
    contact_id: uuid.UUID
    actor_id: uuid.UUID

    model_config = _STRICT


class ConvertToOpportunityRequest(BaseModel):
    contact_id: uuid.UUID
    actor_id: uuid.UUID
    expected_value: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)

    model_config = _STRICT


class CloseDealRequest(BaseModel):
    """OPPORTUNITY -> CUSTOMER. Defaults to the contact's OPEN opportunity."""
    contact_id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None
    deal_value: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    opportunity_id: Optional[uuid.UUID] = None

    model_config = _STRICT


class MarkLostRequest(BaseModel):
    contact_id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None
    reason: Optional[str] = Field(None, max_length=2000)
    opportunity_id: Optional[uuid.UUID] = None

    model_config = _STRICT


class PromoteToEvangelistRequest(BaseModel):
    contact_id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None  # None = system

    model_config = _STRICT


class MarkDormantRequest(BaseModel):
    """Administrative parking of a contact from any non-DORMANT status."""
    contact_id: uuid.UUID
    actor_id: uuid.UUID
    reason: Optional[str] = Field(None, max_length=2000)

    model_config = _STRICT


class RecordSessionRequest(BaseModel):
    contact_id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None
    rating: Optional[int] = Field(None, ge=1, le=10)
    session_status: SessionStatus
    stage: Optional[ContactStatus] = None  # defaults to the contact's current status
    mode_of_contact: ContactMode = ContactMode.CALL
    remarks: Optional[str] = None

    model_config = _STRICT


class UpdateSessionRequest(BaseModel):
    """Correction of a logged session. Only the fields that are set change."""
    session_id: uuid.UUID
    rating: Optional[int] = Field(None, ge=1, le=10)
    session_status: Optional[SessionStatus] = None
    mode_of_contact: Optional[ContactMode] = None
    remarks: Optional[str] = None

    model_config = _STRICT


class RecordFeedbackRequest(BaseModel):
    contact_id: uuid.UUID
    rating: int = Field(..., ge=1, le=10)
    comment: Optional[str] = Field(None, max_length=5000)

    model_config = _STRICT


class TransitionResult(BaseModel):
    """Outcome of a transition request.

    ``changed`` is False only for ignored tracking events.
    """
    transition: Transition
    contact_id: uuid.UUID
    changed: bool = True
    old_status: Optional[ContactStatus] = None
    new_status: Optional[ContactStatus] = None
    opportunity_id: Optional[uuid.UUID] = None
    deal_id: Optional[uuid.UUID] = None


class ContactCreated(BaseModel):
    contact_id: uuid.UUID
    status: ContactStatus
    tracking_token: str


class SessionRecorded(BaseModel):
    session_id: uuid.UUID
    contact_id: uuid.UUID
    average_rating: float
    temperature: str


class FeedbackRecorded(BaseModel):
    feedback_id: uuid.UUID
    contact_id: uuid.UUID
    average_rating: float
    promoted: Optional[TransitionResult] = None
