from flask import current_app

from ..models import ActivityLog, db


def log_activity(staff, action_type, entity_type, entity_id=None, details=None):
    """Record a staff action; added to the current session, committed by the caller."""
    entry = ActivityLog(
        staff_id=staff.id,
        action_type=action_type,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or None,
    )
    db.session.add(entry)
    current_app.logger.info("Activity %s on %s %s by %s", action_type, entity_type, entity_id, staff.id)
    return entry
