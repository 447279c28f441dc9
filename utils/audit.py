import json
import logging
from flask import request
from models import db
from models.audit_log import AuditLog

log = logging.getLogger("audit")


def _client_ip():
    return request.headers.get("X-Forwarded-For", request.remote_addr)


def log_event(action: str, user_id=None, entity=None, entity_id=None, metadata=None):
    """Persist one audit row and mirror it to the ``audit`` logger."""
    user_agent = request.headers.get("User-Agent", "")
    ip = _client_ip()

    row = AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None,
    )
    db.session.add(row)
    db.session.commit()

    log.info("%s user=%s %s=%s ip=%s", action, user_id, entity or "-", entity_id, ip)


def log_slot_event(action: str, user_id, slot_id, **metadata):
    log_event(action, user_id=user_id, entity="slot", entity_id=slot_id, metadata=metadata or None)
