"""Prometheus metrics for the lifecycle engine and its side effects."""

from prometheus_client import Counter, Histogram

TRANSITIONS = Counter("crm_transitions_total", "Transition requests", ["transition", "outcome"])
TRANSITION_DURATION = Histogram("crm_transition_duration_seconds", "Transition unit-of-work duration", ["transition"])
LOCK_CONFLICTS = Counter("crm_lock_conflicts_total", "Optimistic lock or uniqueness conflicts retried", ["transition"])
SIDE_EFFECTS = Counter("crm_side_effects_total", "Side-effect dispatch outcomes", ["kind", "outcome"])
