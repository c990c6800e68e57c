"""Repository layer for the CRM lifecycle engine.

Plain functions over a SQLAlchemy ``Session``; none of them commit.
- contacts: get_by_id, get_for_update, create
- opportunities: get_by_id, get_open_by_contact, get_latest_by_contact, list_by_contact, create, mark_won, mark_lost
- deals: get_by_opportunity_id, list_by_contact, create
- sessions: create, get_by_id, update, delete, list_by_contact, average_rating
- feedback: create, average_rating, count
- status_history: append, list_for_contact, last_for_contact
- notifications: create, list_for_employee, unread_count, mark_as_read
"""
