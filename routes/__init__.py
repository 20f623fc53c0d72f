from .health import health_bp
from .calendar import calendar_bp
from .sessions import sessions_bp
from .quota import quota_bp
from .audit_logs import audit_bp
