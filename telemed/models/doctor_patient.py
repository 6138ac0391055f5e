from datetime import datetime
from . import db


class DoctorPatient(db.Model):
    """Care assignment between a doctor and a patient."""
    __tablename__ = 'doctor_patients'

    doctor_id = db.Column(db.String(255), db.ForeignKey('users.id'), primary_key=True)
    patient_id = db.Column(db.String(255), db.ForeignKey('users.id'), primary_key=True)
    assigned_at = db.Column(db.DateTime, default=datetime.now)

    def __repr__(self):
        return f'<DoctorPatient {self.doctor_id}->{self.patient_id}>'

