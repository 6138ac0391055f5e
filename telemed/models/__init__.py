from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager

db = SQLAlchemy()
login_manager = LoginManager()


def enum_values(enum_cls):
    """Store enum members by value ('in-progress') rather than by name."""
    return [member.value for member in enum_cls]


def iso(value):
    return value.isoformat() if value else None


# Import the models here so they are registered whenever db is imported
from .user import User, Role
from .appointment import Appointment, AppointmentStatus, AppointmentType, STATUS_TRANSITIONS
from .message import Message
from .prescription import Prescription, PrescriptionStatus
from .medical_record import MedicalRecord, RecordType
from .file import File, RelatedKind, RelatedTo
from .doctor_patient import DoctorPatient
from .session import UserSession
from .log import SystemLog, LogType


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, user_id)
