from enum import Enum
from datetime import datetime
from . import db, enum_values, iso


class AppointmentStatus(Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppointmentType(Enum):
    VIDEO = "video"
    IN_PERSON = "in-person"


# Allowed status changes; completed and cancelled are terminal
STATUS_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED},
    AppointmentStatus.IN_PROGRESS: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}


class Appointment(db.Model):
    __tablename__ = 'appointments'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.String(255), db.ForeignKey('users.id'), nullable=False, index=True)
    doctor_id = db.Column(db.String(255), db.ForeignKey('users.id'), nullable=False, index=True)
    appointment_date = db.Column(db.Date, nullable=False)
    appointment_time = db.Column(db.Time, nullable=False)
    status = db.Column(
        db.Enum(AppointmentStatus, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=AppointmentStatus.SCHEDULED
    )
    type = db.Column(
        db.Enum(AppointmentType, values_callable=enum_values, native_enum=False, length=20),
        nullable=False
    )
    reason = db.Column(db.Text)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    def __repr__(self):
        return f'<Appointment {self.id}>'

    def involves(self, user_id):
        return user_id in (self.patient_id, self.doctor_id)

    def to_dict(self):
        return {
            'id': self.id,
            'patientId': self.patient_id,
            'doctorId': self.doctor_id,
            'appointmentDate': iso(self.appointment_date),
            'appointmentTime': self.appointment_time.strftime('%H:%M:%S') if self.appointment_time else None,
            'status': self.status.value,
            'type': self.type.value,
            'reason': self.reason,
            'notes': self.notes,
            'createdAt': iso(self.created_at),
            'updatedAt': iso(self.updated_at)
        }
