from enum import Enum
from datetime import datetime
from . import db, enum_values, iso


class RecordType(Enum):
    DIAGNOSIS = "diagnosis"
    TEST = "test"
    NOTE = "note"


class MedicalRecord(db.Model):
    """Clinical entry written by a doctor; read-only once created."""
    __tablename__ = 'medical_records'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.String(255), db.ForeignKey('users.id'), nullable=False, index=True)
    doctor_id = db.Column(db.String(255), db.ForeignKey('users.id'), nullable=False, index=True)
    record_type = db.Column(
        db.Enum(RecordType, values_callable=enum_values, native_enum=False, length=20),
        nullable=False
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.now)

    def __repr__(self):
        return f'<MedicalRecord {self.id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'patientId': self.patient_id,
            'doctorId': self.doctor_id,
            'recordType': self.record_type.value,
            'title': self.title,
            'description': self.description,
            'date': iso(self.date),
            'createdAt': iso(self.created_at)
        }
