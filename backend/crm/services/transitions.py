"""Transition authority - the contact lifecycle state machine.

Every operation is one unit of work:
1. Lock the contact row (FOR UPDATE, plus the version compare-and-swap)
2. Validate the current status and any rating gate
3. Write the new status, opportunity/deal rows and one status_history row
4. Commit, then hand side effects to the dispatcher

Rejections raise a TransitionError subclass and leave nothing behind.
Concurrent writers surface as StaleDataError or as a violation of the
unique guards on opportunities and deals; the whole unit is retried
against the now-current state. Any other IntegrityError propagates.
"""

import hmac
import time
import uuid
from datetime import datetime
from typing import Callable, Optional, TypeVar

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from crm.config import Settings, settings as default_settings
from crm.database import get_session_factory, utcnow
from crm.errors import (
    ConflictingOpenResourceError,
    GateUnsatisfiedError,
    InvalidStateError,
    NotFoundError,
    TransitionError,
)
from crm.lifecycle.states import (
    ContactStatus,
    OpportunityStatus,
    Transition,
    required_status,
    target_status,
)
from crm.metrics import LOCK_CONFLICTS, TRANSITION_DURATION, TRANSITIONS
from crm.models import Contact, Opportunity
from crm.repositories import contacts as contacts_repo
from crm.repositories import deals as deals_repo
from crm.repositories import feedback as feedback_repo
from crm.repositories import opportunities as opportunities_repo
from crm.repositories import sessions as sessions_repo
from crm.repositories import status_history as history_repo
from crm.schemas.common import (
    ContactResponse,
    DealResponse,
    FeedbackSummary,
    OpportunityResponse,
    SessionResponse,
    SessionSummary,
    StatusHistoryResponse,
)
from crm.schemas.transitions import (
    CloseDealRequest,
    ContactCreated,
    ConvertToOpportunityRequest,
    CreateContactRequest,
    FeedbackRecorded,
    MarkDormantRequest,
    MarkLostRequest,
    PromoteToEvangelistRequest,
    PromoteToMQLRequest,
    PromoteToSQLRequest,
    RecordFeedbackRequest,
    RecordSessionRequest,
    SessionRecorded,
    TrackingEventRequest,
    TransitionResult,
    UpdateSessionRequest,
)
from crm.services.dispatcher import SideEffect, SideEffectDispatcher
from crm.services.signals import SignalAggregator

logger = structlog.get_logger()

T = TypeVar("T")
Work = Callable[[Session, list[SideEffect]], T]


# Unique constraints that concurrent writers on one contact can trip. The
# second name of each pair is how SQLite reports the same violation.
_RACE_CONSTRAINTS = (
    "uq_opportunities_open_per_contact",
    "opportunities.contact_id",
    "deals_opportunity_id_key",
    "deals.opportunity_id",
)


def is_race_violation(error: IntegrityError) -> bool:
    """True when the violated constraint is one a concurrent transition can hit."""
    diag = getattr(error.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint in _RACE_CONSTRAINTS
    message = str(error.orig)
    return any(name in message for name in _RACE_CONSTRAINTS)


class TransitionAuthority:
    """Validates and commits contact lifecycle transitions."""

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        dispatcher: Optional[SideEffectDispatcher] = None,
        signals: Optional[SignalAggregator] = None,
        settings: Settings = default_settings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session_factory = session_factory or get_session_factory()
        self.settings = settings
        self.dispatcher = dispatcher or SideEffectDispatcher(settings=settings)
        self.signals = signals or SignalAggregator(settings)
        self.clock = clock or utcnow

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def _run(self, operation: str, work: Work) -> T:
        start = time.perf_counter()
        attempts = max(1, self.settings.transition_max_attempts)

        for attempt in range(1, attempts + 1):
            effects: list[SideEffect] = []
            session = self.session_factory()
            try:
                result = work(session, effects)
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if not is_race_violation(e):
                    TRANSITIONS.labels(transition=operation, outcome="error").inc()
                    logger.error("transition_integrity_error", operation=operation, error=str(e.orig)[:200])
                    raise
                LOCK_CONFLICTS.labels(transition=operation).inc()
                logger.warning("transition_conflict_retry", operation=operation, attempt=attempt, error=str(e)[:200])
                continue
            except StaleDataError as e:
                session.rollback()
                LOCK_CONFLICTS.labels(transition=operation).inc()
                logger.warning("transition_conflict_retry", operation=operation, attempt=attempt, error=str(e)[:200])
                continue
            except TransitionError as e:
                session.rollback()
                TRANSITIONS.labels(transition=operation, outcome=e.code).inc()
                logger.info("transition_rejected", operation=operation, **e.to_dict())
                raise
            except Exception:
                session.rollback()
                TRANSITIONS.labels(transition=operation, outcome="error").inc()
                raise
            finally:
                session.close()

            outcome = "ignored" if getattr(result, "changed", True) is False else "committed"
            TRANSITIONS.labels(transition=operation, outcome=outcome).inc()
            TRANSITION_DURATION.labels(transition=operation).observe(time.perf_counter() - start)

            # Post-commit only: a failed dispatch never undoes the transition
            if effects:
                self.dispatcher.dispatch(effects)
            return result

        TRANSITIONS.labels(transition=operation, outcome="conflict").inc()
        raise ConflictingOpenResourceError(
            f"{operation} kept conflicting with concurrent changes; re-read the contact and retry",
            resource="contact",
            retryable=True,
        )

    # ------------------------------------------------------------------
    # Helpers (called inside a unit of work)
    # ------------------------------------------------------------------

    def _lock_contact(self, session: Session, contact_id: uuid.UUID) -> Contact:
        contact = contacts_repo.get_for_update(session, contact_id)
        if contact is None:
            raise NotFoundError("contact", contact_id)
        return contact

    def _require_status(self, contact: Contact, transition: Transition, message: str) -> None:
        expected = required_status(transition)
        if contact.status != expected.value:
            raise InvalidStateError(
                message,
                current_status=contact.status,
                required_status=expected.value,
                contact_id=str(contact.id),
            )

    def _move(
        self,
        session: Session,
        contact: Contact,
        transition: Transition,
        actor_id: Optional[uuid.UUID],
    ) -> tuple[ContactStatus, ContactStatus]:
        old_status = ContactStatus(contact.status)
        new_status = target_status(transition)
        contact.status = new_status.value
        history_repo.append(session, contact.id, old_status, new_status, actor_id, self.clock())
        # Flush now so a stale version fails here, inside the retry loop
        session.flush()
        logger.info(
            "transition_applied",
            transition=transition.value,
            contact_id=str(contact.id),
            old_status=old_status.value,
            new_status=new_status.value,
            actor_id=str(actor_id) if actor_id else None,
        )
        return old_status, new_status

    @staticmethod
    def _recipient(contact: Contact, actor_id: Optional[uuid.UUID]) -> Optional[uuid.UUID]:
        return contact.assigned_employee_id or actor_id

    def _resolve_opportunity(
        self,
        session: Session,
        contact: Contact,
        opportunity_id: Optional[uuid.UUID],
    ) -> Opportunity:
        """The requested opportunity, else the OPEN one, else the most recent one."""
        if opportunity_id is not None:
            opportunity = opportunities_repo.get_by_id(session, opportunity_id, for_update=True)
            if opportunity is None or opportunity.contact_id != contact.id:
                raise NotFoundError("opportunity", opportunity_id)
            return opportunity

        opportunity = opportunities_repo.get_open_by_contact(session, contact.id, for_update=True)
        if opportunity is None:
            opportunity = opportunities_repo.get_latest_by_contact(session, contact.id)
        if opportunity is None:
            raise NotFoundError("opportunity", f"for contact {contact.id}")
        return opportunity

    @staticmethod
    def _require_open(opportunity: Opportunity, message: str) -> None:
        if opportunity.status != OpportunityStatus.OPEN.value:
            raise InvalidStateError(
                message,
                current_status=opportunity.status,
                required_status=OpportunityStatus.OPEN.value,
                opportunity_id=str(opportunity.id),
            )

    # ------------------------------------------------------------------
    # Contact creation
    # ------------------------------------------------------------------

    def create_contact(self, request: CreateContactRequest) -> ContactCreated:
        """Create a contact in LEAD and send the lead email with a tracking link."""

        def work(session: Session, effects: list[SideEffect]) -> ContactCreated:
            token = uuid.uuid4().hex
            contact = contacts_repo.create(
                session,
                name=request.name,
                email=request.email,
                company_id=request.company_id,
                tracking_token=token,
                phone=request.phone,
                assigned_employee_id=request.assigned_employee_id,
            )
            effects.append(SideEffect.lead_email(contact.id, token))
            logger.info("contact_created", contact_id=str(contact.id), actor_id=str(request.actor_id) if request.actor_id else None)
            return ContactCreated(contact_id=contact.id, status=ContactStatus.LEAD, tracking_token=token)

        return self._run("CREATE_CONTACT", work)

    # ------------------------------------------------------------------
    # LEAD -> MQL
    # ------------------------------------------------------------------

    def record_tracking_event(self, request: TrackingEventRequest) -> TransitionResult:
        """Automatic LEAD -> MQL from marketing activity.

        A wrong token, unknown contact or non-LEAD status is a silent no-op,
        so replaying the same event changes state once.
        """
        transition = Transition.TRACKED_ENGAGEMENT

        def work(session: Session, effects: list[SideEffect]) -> TransitionResult:
            ignored = TransitionResult(transition=transition, contact_id=request.contact_id, changed=False)
            contact = contacts_repo.get_for_update(session, request.contact_id)
            if contact is None:
                logger.info("tracking_event_ignored", contact_id=str(request.contact_id), reason="not_found")
                return ignored
            if not contact.tracking_token or not hmac.compare_digest(contact.tracking_token, request.token):
                logger.info("tracking_event_ignored", contact_id=str(contact.id), reason="token_mismatch")
                return ignored
            if contact.status != ContactStatus.LEAD.value:
                logger.info("tracking_event_ignored", contact_id=str(contact.id), reason="not_lead", status=contact.status)
                ignored.old_status = ignored.new_status = ContactStatus(contact.status)
                return ignored

            contact.interest_score += 1
            old_status, new_status = self._move(session, contact, transition, None)
            effects.append(SideEffect.notification(
                "LEAD_ENGAGED", contact.id, contact.assigned_employee_id,
                {"contact_name": contact.name, "interest_score": contact.interest_score},
            ))
            return TransitionResult(
                transition=transition, contact_id=contact.id,
                old_status=old_status, new_status=new_status,
            )

        return self._run(transition.value, work)

    def promote_to_mql(self, request: PromoteToMQLRequest) -> TransitionResult:
        transition = Transition.PROMOTE_TO_MQL

        def work(session: Session, effects: list[SideEffect]) -> TransitionResult:
            contact = self._lock_contact(session, request.contact_id)
            self._require_status(contact, transition, "only LEAD can be promoted to MQL")
            old_status, new_status = self._move(session, contact, transition, request.actor_id)
            return TransitionResult(
                transition=transition, contact_id=contact.id,
                old_status=old_status, new_status=new_status,
            )

        return self._run(transition.value, work)

    # ------------------------------------------------------------------
    # MQL -> SQL
    # ------------------------------------------------------------------

    def promote_to_sql(self, request: PromoteToSQLRequest) -> TransitionResult:
        transition = Transition.PROMOTE_TO_SQL

        def work(session: Session, effects: list[SideEffect]) -> TransitionResult:
            contact = self._lock_contact(session, request.contact_id)
            self._require_status(contact, transition, "only MQL can be promoted to SQL")

            # Evaluated at commit time, never cached across requests
            avg_rating = self.signals.stage_qualification_rating(session, contact.id)
            threshold = self.settings.sql_min_avg_session_rating
            if avg_rating < threshold:
                raise GateUnsatisfiedError(
                    "not qualified: average MQL session rating is below the threshold",
                    gate="mql_session_rating",
                    value=avg_rating,
                    threshold=threshold,
                )

            old_status, new_status = self._move(session, contact, transition, request.actor_id)
            return TransitionResult(
                transition=transition, contact_id=contact.id,
                old_status=old_status, new_status=new_status,
            )

        return self._run(transition.value, work)

    # ------------------------------------------------------------------
    # SQL -> OPPORTUNITY
    # ------------------------------------------------------------------

    def convert_to_opportunity(self, request: ConvertToOpportunityRequest) -> TransitionResult:
        transition = Transition.CONVERT_TO_OPPORTUNITY

        def work(session: Session, effects: list[SideEffect]) -> TransitionResult:
            contact = self._lock_contact(session, request.contact_id)

            existing = opportunities_repo.get_open_by_contact(session, contact.id, for_update=True)
            if existing is not None:
                raise ConflictingOpenResourceError(
                    "an open opportunity already exists for this contact",
                    resource="opportunity",
                    existing_id=existing.id,
                )
            self._require_status(contact, transition, "only SQL contacts can be converted to an opportunity")

            opportunity = opportunities_repo.create(
                session, contact.id, request.expected_value, created_by=request.actor_id,
            )
            old_status, new_status = self._move(session, contact, transition, request.actor_id)
            effects.append(SideEffect.notification(
                "OPPORTUNITY_CREATED", contact.id, self._recipient(contact, request.actor_id),
                {
                    "contact_name": contact.name,
                    "opportunity_id": str(opportunity.id),
                    "expected_value": str(request.expected_value),
                },
            ))
            return TransitionResult(
                transition=transition, contact_id=contact.id,
                old_status=old_status, new_status=new_status,
                opportunity_id=opportunity.id,
            )

        return self._run(transition.value, work)

    # ------------------------------------------------------------------
    # OPPORTUNITY -> CUSTOMER / DORMANT
    # ------------------------------------------------------------------

    def close_deal(self, request: CloseDealRequest) -> TransitionResult:
        """Win the opportunity and lock the money in a deal."""
        transition = Transition.CLOSE_DEAL

        def work(session: Session, effects: list[SideEffect]) -> TransitionResult:
            contact = self._lock_contact(session, request.contact_id)
            opportunity = self._resolve_opportunity(session, contact, request.opportunity_id)

            existing_deal = deals_repo.get_by_opportunity_id(session, opportunity.id)
            if existing_deal is not None:
                raise ConflictingOpenResourceError(
                    "a deal already exists for this opportunity",
                    resource="deal",
                    existing_id=existing_deal.id,
                )
            self._require_open(opportunity, "only OPEN opportunities can be won")
            self._require_status(contact, transition, "only OPPORTUNITY contacts can become customers")

            now = self.clock()
            deal = deals_repo.create(
                session,
                opportunity_id=opportunity.id,
                contact_id=contact.id,
                deal_value=request.deal_value,
                closed_by=request.actor_id,
                closed_at=now,
            )
            opportunities_repo.mark_won(opportunity, now)
            old_status, new_status = self._move(session, contact, transition, request.actor_id)
            effects.append(SideEffect.notification(
                "DEAL_WON", contact.id, self._recipient(contact, request.actor_id),
                {
                    "contact_name": contact.name,
                    "opportunity_id": str(opportunity.id),
                    "deal_id": str(deal.id),
                    "deal_value": str(request.deal_value),
                },
            ))
            return TransitionResult(
                transition=transition, contact_id=contact.id,
                old_status=old_status, new_status=new_status,
                opportunity_id=opportunity.id, deal_id=deal.id,
            )

        return self._run(transition.value, work)

    def mark_lost(self, request: MarkLostRequest) -> TransitionResult:
        transition = Transition.MARK_LOST

        def work(session: Session, effects: list[SideEffect]) -> TransitionResult:
            contact = self._lock_contact(session, request.contact_id)
            opportunity = self._resolve_opportunity(session, contact, request.opportunity_id)
            self._require_open(opportunity, "only OPEN opportunities can be lost")
            self._require_status(contact, transition, "only OPPORTUNITY contacts can be marked lost")

            opportunities_repo.mark_lost(opportunity, self.clock(), request.reason)
            old_status, new_status = self._move(session, contact, transition, request.actor_id)
            effects.append(SideEffect.notification(
                "OPPORTUNITY_LOST", contact.id, self._recipient(contact, request.actor_id),
                {"contact_name": contact.name, "opportunity_id": str(opportunity.id), "reason": request.reason},
            ))
            return TransitionResult(
                transition=transition, contact_id=contact.id,
                old_status=old_status, new_status=new_status,
                opportunity_id=opportunity.id,
            )

        return self._run(transition.value, work)

    # ------------------------------------------------------------------
    # CUSTOMER -> EVANGELIST
    # ------------------------------------------------------------------

    def _promote_evangelist(
        self,
        session: Session,
        contact: Contact,
        actor_id: Optional[uuid.UUID],
        effects: list[SideEffect],
    ) -> TransitionResult:
        transition = Transition.PROMOTE_TO_EVANGELIST
        self._require_status(contact, transition, "not eligible: only customers can become evangelists")

        avg_rating = self.signals.evangelist_qualification_rating(session, contact.id)
        threshold = self.settings.evangelist_min_avg_feedback
        if avg_rating < threshold:
            raise GateUnsatisfiedError(
                "not eligible: average feedback rating is below the threshold",
                gate="feedback_rating",
                value=avg_rating,
                threshold=threshold,
            )

        old_status, new_status = self._move(session, contact, transition, actor_id)
        effects.append(SideEffect.notification(
            "CONTACT_EVANGELIST", contact.id, contact.assigned_employee_id,
            {"contact_name": contact.name, "average_feedback": round(avg_rating, 2)},
        ))
        return TransitionResult(
            transition=transition, contact_id=contact.id,
            old_status=old_status, new_status=new_status,
        )

    def promote_to_evangelist(self, request: PromoteToEvangelistRequest) -> TransitionResult:
        def work(session: Session, effects: list[SideEffect]) -> TransitionResult:
            contact = self._lock_contact(session, request.contact_id)
            return self._promote_evangelist(session, contact, request.actor_id, effects)

        return self._run(Transition.PROMOTE_TO_EVANGELIST.value, work)

    # ------------------------------------------------------------------
    # * -> DORMANT (administrative)
    # ------------------------------------------------------------------

    def mark_dormant(self, request: MarkDormantRequest) -> TransitionResult:
        """Park a contact. An OPEN opportunity is closed as LOST with the same reason."""
        transition = Transition.MARK_DORMANT

        def work(session: Session, effects: list[SideEffect]) -> TransitionResult:
            contact = self._lock_contact(session, request.contact_id)
            if contact.status == ContactStatus.DORMANT.value:
                raise InvalidStateError(
                    "contact is already DORMANT",
                    current_status=contact.status,
                    contact_id=str(contact.id),
                )

            opportunity = opportunities_repo.get_open_by_contact(session, contact.id, for_update=True)
            if opportunity is not None:
                opportunities_repo.mark_lost(opportunity, self.clock(), request.reason)

            old_status, new_status = self._move(session, contact, transition, request.actor_id)
            return TransitionResult(
                transition=transition, contact_id=contact.id,
                old_status=old_status, new_status=new_status,
                opportunity_id=opportunity.id if opportunity else None,
            )

        return self._run(transition.value, work)

    # ------------------------------------------------------------------
    # Sessions and feedback
    # ------------------------------------------------------------------

    def record_session(self, request: RecordSessionRequest) -> SessionRecorded:
        """Log an interaction and refresh the contact's temperature."""

        def work(session: Session, effects: list[SideEffect]) -> SessionRecorded:
            contact = self._lock_contact(session, request.contact_id)
            stage = request.stage.value if request.stage else contact.status
            row = sessions_repo.create(
                session,
                contact_id=contact.id,
                stage=stage,
                session_status=request.session_status.value,
                mode_of_contact=request.mode_of_contact.value,
                rating=request.rating,
                employee_id=request.actor_id,
                remarks=request.remarks,
            )
            avg_rating, temperature = self.signals.refresh_temperature(session, contact)
            session.flush()
            return SessionRecorded(
                session_id=row.id, contact_id=contact.id,
                average_rating=avg_rating, temperature=temperature.value,
            )

        return self._run("RECORD_SESSION", work)

    def update_session(self, request: UpdateSessionRequest) -> SessionRecorded:
        """Correct a logged session's rating, status, mode or remarks."""

        def work(session: Session, effects: list[SideEffect]) -> SessionRecorded:
            row = sessions_repo.get_by_id(session, request.session_id)
            if row is None:
                raise NotFoundError("session", request.session_id)
            contact = self._lock_contact(session, row.contact_id)

            changes = {}
            for key, value in request.model_dump(exclude_unset=True, exclude={"session_id"}).items():
                if value is None and key in ("session_status", "mode_of_contact"):
                    continue  # not nullable; None means "leave as is"
                changes[key] = value.value if hasattr(value, "value") else value
            sessions_repo.update(session, row, changes)

            avg_rating, temperature = self.signals.refresh_temperature(session, contact)
            session.flush()
            return SessionRecorded(
                session_id=row.id, contact_id=contact.id,
                average_rating=avg_rating, temperature=temperature.value,
            )

        return self._run("UPDATE_SESSION", work)

    def delete_session(self, session_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None) -> SessionRecorded:
        """Administrative removal of a logged session."""

        def work(session: Session, effects: list[SideEffect]) -> SessionRecorded:
            row = sessions_repo.get_by_id(session, session_id)
            if row is None:
                raise NotFoundError("session", session_id)
            contact = self._lock_contact(session, row.contact_id)
            sessions_repo.delete(session, row)

            avg_rating, temperature = self.signals.refresh_temperature(session, contact)
            session.flush()
            logger.info("session_deleted", session_id=str(session_id), actor_id=str(actor_id) if actor_id else None)
            return SessionRecorded(
                session_id=session_id, contact_id=contact.id,
                average_rating=avg_rating, temperature=temperature.value,
            )

        return self._run("DELETE_SESSION", work)

    def record_feedback(self, request: RecordFeedbackRequest) -> FeedbackRecorded:
        """Store customer feedback; may promote the contact to EVANGELIST."""

        def work(session: Session, effects: list[SideEffect]) -> FeedbackRecorded:
            contact = self._lock_contact(session, request.contact_id)
            if contact.status != ContactStatus.CUSTOMER.value:
                raise InvalidStateError(
                    "only customers can submit feedback",
                    current_status=contact.status,
                    required_status=ContactStatus.CUSTOMER.value,
                    contact_id=str(contact.id),
                )

            row = feedback_repo.create(session, contact.id, request.rating, request.comment)
            avg_rating = self.signals.evangelist_qualification_rating(session, contact.id)

            promoted = None
            if self.settings.evangelist_auto_promote and avg_rating >= self.settings.evangelist_min_avg_feedback:
                promoted = self._promote_evangelist(session, contact, None, effects)

            return FeedbackRecorded(
                feedback_id=row.id, contact_id=contact.id,
                average_rating=avg_rating, promoted=promoted,
            )

        return self._run("RECORD_FEEDBACK", work)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def get_contact(self, contact_id: uuid.UUID) -> ContactResponse:
        with self.session_factory() as session:
            contact = contacts_repo.get_by_id(session, contact_id)
            if contact is None:
                raise NotFoundError("contact", contact_id)
            return ContactResponse.model_validate(contact)

    def get_status_history(self, contact_id: uuid.UUID) -> list[StatusHistoryResponse]:
        with self.session_factory() as session:
            rows = history_repo.list_for_contact(session, contact_id)
            return [StatusHistoryResponse.model_validate(row) for row in rows]

    def get_opportunities(self, contact_id: uuid.UUID) -> list[OpportunityResponse]:
        with self.session_factory() as session:
            rows = opportunities_repo.list_by_contact(session, contact_id)
            return [OpportunityResponse.model_validate(row) for row in rows]

    def get_deals(self, contact_id: uuid.UUID) -> list[DealResponse]:
        with self.session_factory() as session:
            rows = deals_repo.list_by_contact(session, contact_id)
            return [DealResponse.model_validate(row) for row in rows]

    def get_session_summary(self, contact_id: uuid.UUID) -> SessionSummary:
        with self.session_factory() as session:
            if contacts_repo.get_by_id(session, contact_id) is None:
                raise NotFoundError("contact", contact_id)
            rows = sessions_repo.list_by_contact(session, contact_id)
            return SessionSummary(
                contact_id=contact_id,
                sessions=[SessionResponse.model_validate(row) for row in rows],
                average_rating=self.signals.average_session_rating(session, contact_id),
                session_count=len(rows),
            )

    def get_feedback_summary(self, contact_id: uuid.UUID) -> FeedbackSummary:
        with self.session_factory() as session:
            if contacts_repo.get_by_id(session, contact_id) is None:
                raise NotFoundError("contact", contact_id)
            return FeedbackSummary(
                contact_id=contact_id,
                average_rating=feedback_repo.average_rating(session, contact_id),
                feedback_count=feedback_repo.count(session, contact_id),
            )
