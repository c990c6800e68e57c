"""
Contact Lifecycle States
Every contact is in exactly ONE of these statuses at any time.
"""

from enum import Enum


class ContactStatus(str, Enum):
    LEAD = "LEAD"                  # Created by an employee
    MQL = "MQL"                    # Marketing qualified (engaged with outreach)
    SQL = "SQL"                    # Sales qualified (session ratings passed the gate)
    OPPORTUNITY = "OPPORTUNITY"    # Open opportunity being worked
    CUSTOMER = "CUSTOMER"          # Deal closed, money locked
    EVANGELIST = "EVANGELIST"      # Happy customer (terminal)
    DORMANT = "DORMANT"            # Lost or parked (terminal)


class Temperature(str, Enum):
    COLD = "COLD"
    WARM = "WARM"
    HOT = "HOT"


class OpportunityStatus(str, Enum):
    OPEN = "OPEN"
    WON = "WON"
    LOST = "LOST"


class SessionStatus(str, Enum):
    CONNECTED = "CONNECTED"
    NOT_CONNECTED = "NOT_CONNECTED"
    BAD_TIMING = "BAD_TIMING"


class ContactMode(str, Enum):
    CALL = "CALL"
    EMAIL = "EMAIL"
    MEETING = "MEETING"
    DEMO = "DEMO"
    NOTE = "NOTE"


class Transition(str, Enum):
    TRACKED_ENGAGEMENT = "TRACKED_ENGAGEMENT"    # LEAD -> MQL, automatic
    PROMOTE_TO_MQL = "PROMOTE_TO_MQL"            # LEAD -> MQL, manual
    PROMOTE_TO_SQL = "PROMOTE_TO_SQL"
    CONVERT_TO_OPPORTUNITY = "CONVERT_TO_OPPORTUNITY"
    CLOSE_DEAL = "CLOSE_DEAL"
    MARK_LOST = "MARK_LOST"
    PROMOTE_TO_EVANGELIST = "PROMOTE_TO_EVANGELIST"
    MARK_DORMANT = "MARK_DORMANT"                # administrative, any -> DORMANT


INITIAL_STATUS = ContactStatus.LEAD

TRANSITIONS = {
    Transition.TRACKED_ENGAGEMENT: (ContactStatus.LEAD, ContactStatus.MQL),
    Transition.PROMOTE_TO_MQL: (ContactStatus.LEAD, ContactStatus.MQL),
    Transition.PROMOTE_TO_SQL: (ContactStatus.MQL, ContactStatus.SQL),
    Transition.CONVERT_TO_OPPORTUNITY: (ContactStatus.SQL, ContactStatus.OPPORTUNITY),
    Transition.CLOSE_DEAL: (ContactStatus.OPPORTUNITY, ContactStatus.CUSTOMER),
    Transition.MARK_LOST: (ContactStatus.OPPORTUNITY, ContactStatus.DORMANT),
    Transition.PROMOTE_TO_EVANGELIST: (ContactStatus.CUSTOMER, ContactStatus.EVANGELIST),
}


def is_legal_edge(old_status: ContactStatus, new_status: ContactStatus) -> bool:
    """True when old -> new is an edge of the pipeline graph.

    Every non-DORMANT status may go to DORMANT administratively.
    """
    old_status, new_status = ContactStatus(old_status), ContactStatus(new_status)
    if new_status == ContactStatus.DORMANT and old_status != ContactStatus.DORMANT:
        return True
    return (old_status, new_status) in TRANSITIONS.values()


def required_status(transition: Transition) -> ContactStatus | None:
    """Status a contact must be in for the transition; None means any non-DORMANT."""
    edge = TRANSITIONS.get(transition)
    return edge[0] if edge else None


def target_status(transition: Transition) -> ContactStatus:
    edge = TRANSITIONS.get(transition)
    return edge[1] if edge else ContactStatus.DORMANT
