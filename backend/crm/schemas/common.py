"""Read-side response schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ContactResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    assigned_employee_id: Optional[uuid.UUID]
    name: str
    email: str
    phone: Optional[str]
    status: str
    temperature: str
    interest_score: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OpportunityResponse(BaseModel):
    id: uuid.UUID
    contact_id: uuid.UUID
    expected_value: Decimal
    status: str
    reason: Optional[str]
    created_at: datetime
    closed_at: Optional[datetime]

    model_config = {"from_attributes": True}


class DealResponse(BaseModel):
    id: uuid.UUID
    opportunity_id: uuid.UUID
    contact_id: uuid.UUID
    deal_value: Decimal
    closed_by: Optional[uuid.UUID]
    closed_at: datetime

    model_config = {"from_attributes": True}


class StatusHistoryResponse(BaseModel):
    id: int
    contact_id: uuid.UUID
    old_status: str
    new_status: str
    changed_by: Optional[uuid.UUID]
    changed_at: datetime

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    id: uuid.UUID
    contact_id: uuid.UUID
    employee_id: Optional[uuid.UUID]
    stage: str
    rating: Optional[int]
    session_status: str
    mode_of_contact: str
    remarks: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class SessionSummary(BaseModel):
    contact_id: uuid.UUID
    sessions: list[SessionResponse]
    average_rating: float
    session_count: int


class FeedbackSummary(BaseModel):
    contact_id: uuid.UUID
    average_rating: float
    feedback_count: int


class NotificationResponse(BaseModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    entity_type: str
    entity_id: Optional[uuid.UUID]
    priority: int
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationInboxResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int
