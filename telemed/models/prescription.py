from enum import Enum
from datetime import datetime
from . import db, enum_values, iso


class PrescriptionStatus(Enum):
    ACTIVE = "active"
    EXPIRED = "expired"


class Prescription(db.Model):
    __tablename__ = 'prescriptions'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.String(255), db.ForeignKey('users.id'), nullable=False, index=True)
    doctor_id = db.Column(db.String(255), db.ForeignKey('users.id'), nullable=False, index=True)
    medication_name = db.Column(db.String(255), nullable=False)
    dosage = db.Column(db.String(100), nullable=False)
    frequency = db.Column(db.String(100), nullable=False)
    duration = db.Column(db.String(100), nullable=False)
    instructions = db.Column(db.Text)
    # Not moved to EXPIRED automatically when expires_at passes
    status = db.Column(
        db.Enum(PrescriptionStatus, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=PrescriptionStatus.ACTIVE
    )
    issued_at = db.Column(db.DateTime, default=datetime.now)
    expires_at = db.Column(db.Date)

    def __repr__(self):
        return f'<Prescription {self.id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'patientId': self.patient_id,
            'doctorId': self.doctor_id,
            'medicationName': self.medication_name,
            'dosage': self.dosage,
            'frequency': self.frequency,
            'duration': self.duration,
            'instructions': self.instructions,
            'status': self.status.value,
            'issuedAt': iso(self.issued_at),
            'expiresAt': iso(self.expires_at)
        }
