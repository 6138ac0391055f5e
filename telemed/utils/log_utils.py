"""
Audit logging helpers. Each helper writes one row to ``system_logs``.
"""
from datetime import datetime
import json
from flask import request, current_app, has_request_context
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError
from ..models import db
from ..models.log import SystemLog, LogType


def log_activity(log_type, message, details=None, user_id=None, ip_address=None, user_agent=None):
    """
    Record an audit event.

    Args:
        log_type (LogType): event category
        message (str): short human readable summary
        details (dict): extra data, stored as JSON
        user_id (str): acting user; defaults to the logged in user
        ip_address (str): defaults to the request's remote address
        user_agent (str): defaults to the request's user agent

    Returns:
        SystemLog: the stored row, or None when the write failed
    """
    try:
        if has_request_context():
            if user_id is None and current_user and current_user.is_authenticated:
                user_id = current_user.id
            if ip_address is None:
                ip_address = request.remote_addr
            if user_agent is None and request.user_agent:
                user_agent = request.user_agent.string

        json_details = None
        if details:
            if isinstance(details, dict):
                details.setdefault('timestamp', datetime.now().isoformat())
                if ip_address:
                    details.setdefault('ip_address', ip_address)
                if user_id:
                    details.setdefault('user_id', user_id)
            json_details = json.dumps(details, default=str)

        log = SystemLog(
            user_id=user_id,
            log_type=log_type,
            message=message[:255],
            details=json_details,
            ip_address=ip_address,
            user_agent=user_agent[:255] if user_agent else None
        )

        db.session.add(log)
        db.session.commit()
        return log

    except SQLAlchemyError as e:
        current_app.logger.error(f"Failed to write audit log: {str(e)}")
        db.session.rollback()
        return None


def log_error(error_message, exception=None, details=None, user_id=None):
    """Record an error, including the exception type and text when given."""
    error_details = details or {}

    if exception:
        error_details['exception'] = str(exception)
        error_details['exception_type'] = exception.__class__.__name__

    return log_activity(
        log_type=LogType.ERROR,
        message=error_message,
        details=error_details,
        user_id=user_id
    )


def log_security(message, details=None, user_id=None):
    return log_activity(LogType.SECURITY, message, details=details, user_id=user_id)


def log_user(message, details=None, user_id=None):
    return log_activity(LogType.USER, message, details=details, user_id=user_id)


def log_appointment(message, details=None, user_id=None):
    return log_activity(LogType.APPOINTMENT, message, details=details, user_id=user_id)


def log_message(message, details=None, user_id=None):
    return log_activity(LogType.MESSAGE, message, details=details, user_id=user_id)


def log_prescription(message, details=None, user_id=None):
    return log_activity(LogType.PRESCRIPTION, message, details=details, user_id=user_id)


def log_record(message, details=None, user_id=None):
    """Medical record events"""
    return log_activity(LogType.RECORD, message, details=details, user_id=user_id)


def log_file(message, details=None, user_id=None):
    return log_activity(LogType.FILE, message, details=details, user_id=user_id)


def log_assignment(message, details=None, user_id=None):
    return log_activity(LogType.ASSIGNMENT, message, details=details, user_id=user_id)
