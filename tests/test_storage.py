from datetime import date, datetime, time, timedelta

import pytest

from telemed.models import (
    db, AppointmentStatus, AppointmentType, DoctorPatient, PrescriptionStatus,
    RecordType, RelatedKind, RelatedTo, Role, User
)
from telemed.storage import storage


@pytest.fixture
def ctx(app, make_user):
    make_user('p1', role='patient')
    make_user('p2', role='patient')
    make_user('d1', role='doctor')
    with app.app_context():
        yield


def book(appointment_date, appointment_time, patient_id='p1', doctor_id='d1'):
    return storage.create_appointment({
        'patient_id': patient_id,
        'doctor_id': doctor_id,
        'appointment_date': appointment_date,
        'appointment_time': appointment_time,
        'type': AppointmentType.VIDEO
    })


def test_get_user_returns_none_when_missing(ctx):
    assert storage.get_user('nobody') is None
    assert storage.get_user('') is None


def test_upsert_user_is_idempotent(ctx):
    first = storage.upsert_user({'id': 'u1', 'email': 'u1@example.com', 'first_name': 'Ann', 'role': 'doctor'})
    created_at = first.created_at
    # Pin the first write in the past so the refresh is observable
    first_updated = datetime(2000, 1, 1)
    first.updated_at = first_updated
    db.session.commit()

    second = storage.upsert_user({'id': 'u1', 'email': 'u1@example.com', 'first_name': 'Anne'})

    assert User.query.filter_by(id='u1').count() == 1
    assert second.first_name == 'Anne'
    # Role untouched when the second call omits it
    assert second.role == Role.DOCTOR
    assert second.created_at == created_at
    assert second.updated_at > first_updated


def test_upsert_user_defaults_to_patient(ctx):
    user = storage.upsert_user({'id': 'u2'})
    assert user.role == Role.PATIENT


def test_get_users_by_role(ctx):
    assert [user.id for user in storage.get_users_by_role(Role.DOCTOR)] == ['d1']
    assert sorted(user.id for user in storage.get_users_by_role('patient')) == ['p1', 'p2']


def test_update_user_profile_ignores_unknown_fields(ctx):
    user = storage.update_user_profile('p1', {'blood_type': 'O+', 'role': Role.DOCTOR})
    assert user.blood_type == 'O+'
    assert user.role == Role.PATIENT
    assert storage.update_user_profile('nobody', {'blood_type': 'O+'}) is None


def test_upcoming_boundary(ctx):
    now = datetime(2030, 1, 10, 12, 0, 0)
    today = now.date()

    book(today - timedelta(days=1), time(15, 0))
    book(today, time(11, 59))
    at_now = book(today, time(12, 0))
    later_today = book(today, time(18, 0))
    tomorrow = book(today + timedelta(days=1), time(8, 0))

    expected = [at_now.id, later_today.id, tomorrow.id]
    assert [a.id for a in storage.get_upcoming_appointments_by_patient('p1', now=now)] == expected
    assert [a.id for a in storage.get_upcoming_appointments_by_doctor('d1', now=now)] == expected


def test_appointments_ordered_by_date_then_time(ctx):
    day = date(2030, 5, 1)
    third = book(day + timedelta(days=1), time(9, 0))
    second = book(day, time(14, 0))
    first = book(day, time(9, 0))

    assert [a.id for a in storage.get_appointments_by_patient('p1')] == [first.id, second.id, third.id]
    assert [a.id for a in storage.get_appointments_by_doctor('d1')] == [first.id, second.id, third.id]


def test_cancelled_appointments_stay_upcoming(ctx):
    now = datetime(2030, 1, 10, 12, 0, 0)
    appointment = book(now.date(), time(13, 0))

    storage.update_appointment(appointment.id, {'status': AppointmentStatus.CANCELLED})

    upcoming = storage.get_upcoming_appointments_by_patient('p1', now=now)
    assert [a.id for a in upcoming] == [appointment.id]
    assert upcoming[0].status == AppointmentStatus.CANCELLED


def test_update_appointment_merges_fields(ctx):
    appointment = book(date(2030, 1, 1), time(9, 0))
    appointment.reason = 'Checkup'
    db.session.commit()

    updated = storage.update_appointment(appointment.id, {'notes': 'Bring results'})

    assert updated.notes == 'Bring results'
    assert updated.reason == 'Checkup'
    assert updated.updated_at is not None


def test_missing_appointment(ctx):
    assert storage.get_appointment(999) is None
    assert storage.update_appointment(999, {'notes': 'x'}) is None
    assert storage.delete_appointment(999) is False


def test_delete_appointment(ctx):
    appointment = book(date(2030, 1, 1), time(9, 0))
    assert storage.delete_appointment(appointment.id) is True
    assert storage.get_appointment(appointment.id) is None


def test_empty_lists(ctx):
    assert storage.get_appointments_by_patient('p1') == []
    assert storage.get_upcoming_appointments_by_doctor('d1') == []
    assert storage.get_messages_by_user('p1') == []
    assert storage.get_conversation('p1', 'd1') == []
    assert storage.get_prescriptions_by_patient('p1') == []
    assert storage.get_active_prescriptions_by_patient('p1') == []
    assert storage.get_medical_records_by_patient('p1') == []
    assert storage.get_files_by_owner('p1') == []
    assert storage.get_doctor_patients('d1') == []
    assert storage.get_patient_doctors('p1') == []


def test_conversation_is_symmetric_and_ordered(ctx):
    base = datetime(2030, 1, 1, 9, 0)
    # Inserted out of order on purpose
    late = storage.create_message({'sender_id': 'p1', 'receiver_id': 'd1', 'content': 'later', 'sent_at': base + timedelta(minutes=5)})
    early = storage.create_message({'sender_id': 'd1', 'receiver_id': 'p1', 'content': 'hello', 'sent_at': base})
    storage.create_message({'sender_id': 'p1', 'receiver_id': 'p2', 'content': 'other', 'sent_at': base})

    forward = [m.id for m in storage.get_conversation('p1', 'd1')]
    backward = [m.id for m in storage.get_conversation('d1', 'p1')]

    assert forward == [early.id, late.id]
    assert backward == forward
    assert len(storage.get_messages_by_user('p1')) == 3


def test_mark_message_as_read(ctx):
    message = storage.create_message({'sender_id': 'p1', 'receiver_id': 'd1', 'content': 'hi'})
    assert message.read is False

    assert storage.mark_message_as_read(message.id) is True
    assert storage.get_message(message.id).read is True
    assert storage.mark_message_as_read(999) is False


def test_active_prescriptions(ctx):
    prescription = storage.create_prescription({
        'patient_id': 'p1',
        'doctor_id': 'd1',
        'medication_name': 'Amoxicillin',
        'dosage': '500mg',
        'frequency': 'Three times daily',
        'duration': '7 days'
    })
    assert prescription.status == PrescriptionStatus.ACTIVE
    assert [p.id for p in storage.get_active_prescriptions_by_patient('p1')] == [prescription.id]

    storage.update_prescription(prescription.id, {'status': PrescriptionStatus.EXPIRED})

    assert storage.get_active_prescriptions_by_patient('p1') == []
    assert [p.id for p in storage.get_prescriptions_by_patient('p1')] == [prescription.id]
    assert [p.id for p in storage.get_prescriptions_by_doctor('d1')] == [prescription.id]


def test_medical_record_date_defaults_to_today(ctx):
    record = storage.create_medical_record({
        'patient_id': 'p1',
        'doctor_id': 'd1',
        'record_type': RecordType.NOTE,
        'title': 'Follow-up',
        'description': 'Recovering well'
    })
    assert record.date == date.today()


def test_medical_records_filtered_by_author(ctx):
    storage.upsert_user({'id': 'd2', 'role': 'doctor'})
    for doctor_id, title in (('d1', 'Mine'), ('d2', 'Theirs')):
        storage.create_medical_record({
            'patient_id': 'p1',
            'doctor_id': doctor_id,
            'record_type': RecordType.NOTE,
            'title': title,
            'description': 'Seen today'
        })

    assert [r.title for r in storage.get_medical_records_by_patient('p1', doctor_id='d1')] == ['Mine']
    assert len(storage.get_medical_records_by_patient('p1')) == 2
    assert storage.has_written_medical_record('d1', 'p1') is True
    assert storage.has_written_medical_record('d1', 'p2') is False


def test_assign_patient_is_idempotent(ctx):
    storage.assign_patient_to_doctor('d1', 'p1')
    storage.assign_patient_to_doctor('d1', 'p1')

    assert DoctorPatient.query.count() == 1
    assert storage.is_patient_assigned('d1', 'p1') is True
    assert storage.is_patient_assigned('d1', 'p2') is False
    assert [u.id for u in storage.get_doctor_patients('d1')] == ['p1']
    assert [u.id for u in storage.get_patient_doctors('p1')] == ['d1']


def test_files_by_relation(ctx):
    related = RelatedTo(kind=RelatedKind.APPOINTMENT, id=7)
    for owner, name, related_to in (('p1', 'a.txt', related), ('d1', 'b.txt', related), ('p1', 'c.txt', None)):
        storage.save_file({
            'owner_id': owner,
            'filename': name,
            'original_name': name,
            'mime_type': 'text/plain',
            'size': 1,
            'path': f'/tmp/{name}',
            'related_to': related_to
        })

    assert [f.filename for f in storage.get_files_by_relation(related)] == ['a.txt', 'b.txt']
    assert [f.filename for f in storage.get_files_by_relation(related, owner_id='p1')] == ['a.txt']
    assert [f.filename for f in storage.get_files_by_owner('p1')] == ['a.txt', 'c.txt']
    assert storage.get_file_by_filename('c.txt').related_to is None
    assert storage.get_file_by_filename('a.txt').related_to == related
