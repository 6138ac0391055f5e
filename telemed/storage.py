"""
Record store: every query the API runs is built here.

Handlers and guards only call these methods; none of them touches the ORM
directly. Reads return ``None`` or an empty list when nothing matches, never
raise. Writes commit on success and roll back before re-raising on failure.
"""
from datetime import datetime, date
from functools import wraps

from sqlalchemy import and_, or_
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from .models import (
    db, User, Role, Appointment, Message, Prescription, PrescriptionStatus,
    MedicalRecord, File, DoctorPatient
)

MYSQL_DIALECTS = ('mysql', 'mariadb')


def _role(value):
    return value if isinstance(value, Role) else Role(value)


def transactional(fn):
    """Commit after a write; roll back and re-raise on database errors."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            result = fn(*args, **kwargs)
            db.session.commit()
            return result
        except SQLAlchemyError:
            db.session.rollback()
            raise
    return wrapper


class DatabaseStorage:

    # Fields a user may change on their own profile
    PROFILE_FIELDS = (
        'first_name', 'last_name', 'profile_image_url', 'date_of_birth',
        'phone_number', 'address', 'specialty', 'blood_type', 'allergies'
    )

    @staticmethod
    def _dialect():
        return db.engine.dialect.name

    def _insert(self, model):
        """Dialect specific INSERT supporting conflict clauses."""
        dialect = self._dialect()
        if dialect == 'sqlite':
            return sqlite_insert(model)
        if dialect == 'postgresql':
            return postgresql_insert(model)
        if dialect in MYSQL_DIALECTS:
            return mysql_insert(model)
        raise RuntimeError(f'Unsupported database dialect for conflict handling: {dialect}')

    # ---- Users ----

    def get_user(self, user_id):
        if not user_id:
            return None
        return db.session.get(User, user_id)

    @transactional
    def upsert_user(self, data):
        """
        Insert the user or merge the given fields into the existing row.

        Runs as one INSERT ... ON CONFLICT statement so two concurrent logins
        for a new identity cannot create duplicates or lose an update.
        ``role`` is only changed when it is part of ``data``.
        """
        values = dict(data)
        if 'role' in values:
            values['role'] = _role(values['role'])
        now = datetime.now()
        updates = {key: value for key, value in values.items() if key != 'id'}
        updates['updated_at'] = now

        stmt = self._insert(User).values(created_at=now, updated_at=now, **values)
        if self._dialect() in MYSQL_DIALECTS:
            stmt = stmt.on_duplicate_key_update(**updates)
        else:
            stmt = stmt.on_conflict_do_update(index_elements=[User.id], set_=updates)
        db.session.execute(stmt)

        return db.session.get(User, values['id'], populate_existing=True)

    @transactional
    def update_user_profile(self, user_id, fields):
        user = self.get_user(user_id)
        if user is None:
            return None
        for key, value in fields.items():
            if key in self.PROFILE_FIELDS:
                setattr(user, key, value)
        user.updated_at = datetime.now()
        return user

    def get_users_by_role(self, role):
        return User.query.filter_by(role=_role(role)).all()

    # ---- Appointments ----

    @transactional
    def create_appointment(self, data):
        appointment = Appointment(**data)
        db.session.add(appointment)
        return appointment

    def get_appointment(self, appointment_id):
        return db.session.get(Appointment, appointment_id)

    def get_appointments_by_patient(self, patient_id):
        return self._appointments(Appointment.patient_id == patient_id)

    def get_appointments_by_doctor(self, doctor_id):
        return self._appointments(Appointment.doctor_id == doctor_id)

    def get_upcoming_appointments_by_patient(self, patient_id, now=None):
        return self._appointments(Appointment.patient_id == patient_id, self._upcoming(now))

    def get_upcoming_appointments_by_doctor(self, doctor_id, now=None):
        return self._appointments(Appointment.doctor_id == doctor_id, self._upcoming(now))

    @staticmethod
    def _upcoming(now=None):
        # Later day, or today at or after the current time
        now = now or datetime.now()
        today = now.date()
        return or_(
            Appointment.appointment_date > today,
            and_(
                Appointment.appointment_date == today,
                Appointment.appointment_time >= now.time()
            )
        )

    @staticmethod
    def _appointments(*criteria):
        return (
            Appointment.query
            .filter(*criteria)
            .order_by(Appointment.appointment_date.asc(), Appointment.appointment_time.asc(), Appointment.id.asc())
            .all()
        )

    @transactional
    def update_appointment(self, appointment_id, fields):
        """Merge the provided fields; returns None when the appointment does not exist."""
        appointment = self.get_appointment(appointment_id)
        if appointment is None:
            return None
        for key, value in fields.items():
            setattr(appointment, key, value)
        appointment.updated_at = datetime.now()
        return appointment

    @transactional
    def delete_appointment(self, appointment_id):
        appointment = self.get_appointment(appointment_id)
        if appointment is None:
            return False
        db.session.delete(appointment)
        return True

    # ---- Messages ----

    @transactional
    def create_message(self, data):
        message = Message(**data)
        db.session.add(message)
        return message

    def get_message(self, message_id):
        return db.session.get(Message, message_id)

    def get_messages_by_user(self, user_id):
        return (
            Message.query
            .filter(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            .order_by(Message.sent_at.asc(), Message.id.asc())
            .all()
        )

    def get_conversation(self, user1_id, user2_id):
        """Messages exchanged in either direction between two users, oldest first."""
        return (
            Message.query
            .filter(or_(
                and_(Message.sender_id == user1_id, Message.receiver_id == user2_id),
                and_(Message.sender_id == user2_id, Message.receiver_id == user1_id)
            ))
            .order_by(Message.sent_at.asc(), Message.id.asc())
            .all()
        )

    @transactional
    def mark_message_as_read(self, message_id):
        updated = Message.query.filter_by(id=message_id).update({Message.read: True})
        return updated > 0

    # ---- Prescriptions ----

    @transactional
    def create_prescription(self, data):
        prescription = Prescription(**data)
        db.session.add(prescription)
        return prescription

    def get_prescription(self, prescription_id):
        return db.session.get(Prescription, prescription_id)

    def get_prescriptions_by_patient(self, patient_id):
        return self._prescriptions(Prescription.patient_id == patient_id)

    def get_prescriptions_by_doctor(self, doctor_id):
        return self._prescriptions(Prescription.doctor_id == doctor_id)

    def get_active_prescriptions_by_patient(self, patient_id):
        return self._prescriptions(
            Prescription.patient_id == patient_id,
            Prescription.status == PrescriptionStatus.ACTIVE
        )

    @staticmethod
    def _prescriptions(*criteria):
        return (
            Prescription.query
            .filter(*criteria)
            .order_by(Prescription.issued_at.asc(), Prescription.id.asc())
            .all()
        )

    @transactional
    def update_prescription(self, prescription_id, fields):
        # Status changes are explicit; nothing expires prescriptions on its own
        prescription = self.get_prescription(prescription_id)
        if prescription is None:
            return None
        for key, value in fields.items():
            setattr(prescription, key, value)
        return prescription

    # ---- Medical records ----

    @transactional
    def create_medical_record(self, data):
        data = dict(data)
        if data.get('date') is None:
            data['date'] = date.today()
        record = MedicalRecord(**data)
        db.session.add(record)
        return record

    def get_medical_records_by_patient(self, patient_id, doctor_id=None):
        """A patient's history, optionally only the entries written by ``doctor_id``."""
        query = MedicalRecord.query.filter_by(patient_id=patient_id)
        if doctor_id is not None:
            query = query.filter_by(doctor_id=doctor_id)
        return query.order_by(MedicalRecord.date.asc(), MedicalRecord.id.asc()).all()

    def has_written_medical_record(self, doctor_id, patient_id):
        return bool(db.session.query(
            MedicalRecord.query.filter_by(doctor_id=doctor_id, patient_id=patient_id).exists()
        ).scalar())

    # ---- Files ----

    @transactional
    def save_file(self, data):
        data = dict(data)
        related_to = data.pop('related_to', None)
        file = File(**data)
        file.related_to = related_to
        db.session.add(file)
        return file

    def get_file_by_filename(self, filename):
        return File.query.filter_by(filename=filename).first()

    def get_files_by_owner(self, owner_id):
        return (
            File.query
            .filter_by(owner_id=owner_id)
            .order_by(File.uploaded_at.asc(), File.id.asc())
            .all()
        )

    def get_files_by_relation(self, related_to, owner_id=None):
        query = File.query.filter_by(related_to_type=related_to.kind, related_to_id=related_to.id)
        if owner_id is not None:
            query = query.filter_by(owner_id=owner_id)
        return query.order_by(File.uploaded_at.asc(), File.id.asc()).all()

    # ---- Doctor / patient assignments ----

    @transactional
    def assign_patient_to_doctor(self, doctor_id, patient_id):
        """Create the assignment; an existing one is left as is."""
        stmt = self._insert(DoctorPatient).values(
            doctor_id=doctor_id,
            patient_id=patient_id,
            assigned_at=datetime.now()
        )
        if self._dialect() in MYSQL_DIALECTS:
            stmt = stmt.prefix_with('IGNORE')
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=[DoctorPatient.doctor_id, DoctorPatient.patient_id])
        db.session.execute(stmt)

    def is_patient_assigned(self, doctor_id, patient_id):
        return db.session.get(DoctorPatient, (doctor_id, patient_id)) is not None

    def get_doctor_patients(self, doctor_id):
        return (
            User.query
            .join(DoctorPatient, DoctorPatient.patient_id == User.id)
            .filter(DoctorPatient.doctor_id == doctor_id)
            .order_by(DoctorPatient.assigned_at.asc())
            .all()
        )

    def get_patient_doctors(self, patient_id):
        return (
            User.query
            .join(DoctorPatient, DoctorPatient.doctor_id == User.id)
            .filter(DoctorPatient.patient_id == patient_id)
            .order_by(DoctorPatient.assigned_at.asc())
            .all()
        )


storage = DatabaseStorage()
