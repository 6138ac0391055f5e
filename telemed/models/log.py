from datetime import datetime
from enum import Enum
import json
from . import db, enum_values, iso


class LogType(Enum):
    """Audit log categories"""
    SYSTEM = 'system'              # Application level events
    SECURITY = 'security'          # Logins, logouts, rejected tokens
    USER = 'user'                  # Profile changes
    APPOINTMENT = 'appointment'
    MESSAGE = 'message'
    PRESCRIPTION = 'prescription'
    RECORD = 'record'              # Medical records
    FILE = 'file'
    ASSIGNMENT = 'assignment'      # Doctor/patient assignments
    ERROR = 'error'

    def __str__(self):
        return self.value


class SystemLog(db.Model):
    """Audit trail row"""
    __tablename__ = 'system_logs'

    id = db.Column(db.Integer, primary_key=True)
    log_type = db.Column(
        db.Enum(LogType, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        index=True
    )
    message = db.Column(db.String(255), nullable=False)
    details = db.Column(db.Text)

    # Acting user, if any. Not a foreign key so rows survive user cleanup.
    user_id = db.Column(db.String(255), nullable=True, index=True)

    ip_address = db.Column(db.String(50))
    user_agent = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=datetime.now, index=True)

    def __repr__(self):
        return f'<SystemLog {self.id}: {self.log_type}>'

    def to_dict(self):
        try:
            details_dict = json.loads(self.details) if self.details else {}
        except ValueError:
            details_dict = {'raw': self.details}

        return {
            'id': self.id,
            'logType': str(self.log_type),
            'message': self.message,
            'details': details_dict,
            'userId': self.user_id,
            'ipAddress': self.ip_address,
            'userAgent': self.user_agent,
            'createdAt': iso(self.created_at)
        }
