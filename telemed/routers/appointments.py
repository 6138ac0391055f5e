from flask import Blueprint, request, jsonify
from datetime import datetime
from ..models import Role
from ..schemas import validate, AppointmentCreate, AppointmentUpdate
from ..storage import storage
from ..utils.errors import NotFoundError, ValidationError
from ..utils.log_utils import log_appointment
from ..utils.permissions import (
    ensure_can_create_appointment, ensure_appointment_participant, ensure_status_transition
)
from .auth import api_login_required, get_caller

appointments_bp = Blueprint('appointments', __name__, url_prefix='/api/appointments')


def check_participants(patient_id=None, doctor_id=None):
    """Referenced users must exist, and doctor_id must point at a doctor."""
    if patient_id is not None and storage.get_user(patient_id) is None:
        raise NotFoundError('Patient not found')
    if doctor_id is not None:
        doctor = storage.get_user(doctor_id)
        if doctor is None:
            raise NotFoundError('Doctor not found')
        if not doctor.has_role(Role.DOCTOR):
            raise ValidationError.for_field('doctorId', 'User is not a doctor')


def get_appointment_or_404(appointment_id):
    appointment = storage.get_appointment(appointment_id)
    if appointment is None:
        raise NotFoundError('Appointment not found')
    return appointment


# Book an appointment
@appointments_bp.route('', methods=['POST'])
@api_login_required
def create_appointment():
    caller = get_caller()
    data = validate(AppointmentCreate, request.get_json(silent=True))

    ensure_can_create_appointment(caller, data.patient_id)
    check_participants(data.patient_id, data.doctor_id)

    appointment = storage.create_appointment(data.model_dump())

    log_appointment(
        message=f'Appointment {appointment.id} booked',
        details={
            'appointment_id': appointment.id,
            'patient_id': appointment.patient_id,
            'doctor_id': appointment.doctor_id,
            'appointment_date': appointment.appointment_date.isoformat(),
            'type': appointment.type.value
        },
        user_id=caller.id
    )

    return jsonify({
        'success': True,
        'message': 'Appointment created',
        'data': appointment.to_dict()
    }), 201


# Appointments of the caller, by role
@appointments_bp.route('', methods=['GET'])
@api_login_required
def get_appointments():
    caller = get_caller()
    if caller.role == Role.DOCTOR:
        appointments = storage.get_appointments_by_doctor(caller.id)
    else:
        appointments = storage.get_appointments_by_patient(caller.id)

    return jsonify({
        'success': True,
        'data': [appointment.to_dict() for appointment in appointments]
    })


@appointments_bp.route('/upcoming', methods=['GET'])
@api_login_required
def get_upcoming_appointments():
    caller = get_caller()
    now = datetime.now()
    if caller.role == Role.DOCTOR:
        appointments = storage.get_upcoming_appointments_by_doctor(caller.id, now=now)
    else:
        appointments = storage.get_upcoming_appointments_by_patient(caller.id, now=now)

    return jsonify({
        'success': True,
        'data': [appointment.to_dict() for appointment in appointments]
    })


@appointments_bp.route('/<int:appointment_id>', methods=['GET'])
@api_login_required
def get_appointment(appointment_id):
    appointment = get_appointment_or_404(appointment_id)
    ensure_appointment_participant(get_caller(), appointment, 'view')

    return jsonify({
        'success': True,
        'data': appointment.to_dict()
    })


# Partial update; PUT behaves like PATCH
@appointments_bp.route('/<int:appointment_id>', methods=['PUT', 'PATCH'])
@api_login_required
def update_appointment(appointment_id):
    caller = get_caller()
    appointment = get_appointment_or_404(appointment_id)
    ensure_appointment_participant(caller, appointment, 'update')

    changes = validate(AppointmentUpdate, request.get_json(silent=True))
    fields = changes.model_dump(exclude_unset=True)

    if 'status' in fields:
        ensure_status_transition(appointment.status, fields['status'])
    if 'patient_id' in fields:
        ensure_can_create_appointment(caller, fields['patient_id'])
    check_participants(fields.get('patient_id'), fields.get('doctor_id'))

    previous_status = appointment.status
    appointment = storage.update_appointment(appointment_id, fields)
    if appointment is None:
        raise NotFoundError('Appointment not found')

    log_appointment(
        message=f'Appointment {appointment_id} updated',
        details={
            'appointment_id': appointment_id,
            'update_fields': sorted(fields.keys()),
            'previous_status': previous_status.value,
            'status': appointment.status.value
        },
        user_id=caller.id
    )

    return jsonify({
        'success': True,
        'message': 'Appointment updated',
        'data': appointment.to_dict()
    })


@appointments_bp.route('/<int:appointment_id>', methods=['DELETE'])
@api_login_required
def delete_appointment(appointment_id):
    caller = get_caller()
    appointment = get_appointment_or_404(appointment_id)
    ensure_appointment_participant(caller, appointment, 'delete')

    storage.delete_appointment(appointment_id)

    log_appointment(
        message=f'Appointment {appointment_id} deleted',
        details={'appointment_id': appointment_id},
        user_id=caller.id
    )

    return '', 204
