from .db import db
from .member import Member, Trainer
from .package import Package, PackageStatus
from .scheduled_session import ScheduledSession, SessionStatus, SessionType
from .audit_log import AuditLog
