from .db import db
from .user import User
from .session import Session
from .slot import Slot, SlotStatus
from .audit_log import AuditLog
