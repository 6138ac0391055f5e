"""
Access rules for clinical resources.

Every guard takes the calling user explicitly and raises AuthorizationError
(or ValidationError for rejected status changes) instead of returning a
flag, so a handler cannot forget to act on the outcome.
"""
from ..models import Role, STATUS_TRANSITIONS
from .errors import AuthorizationError, ValidationError


def ensure_role(user, role, message=None):
    if not user.has_role(role):
        role_name = role.value if isinstance(role, Role) else role
        raise AuthorizationError(message or f'This action requires the {role_name} role')


def ensure_doctor(user, action):
    ensure_role(user, Role.DOCTOR, f'Only doctors can {action}')


def ensure_can_create_appointment(user, patient_id):
    """Patients book for themselves; doctors may book for anyone."""
    if user.role == Role.PATIENT and patient_id != user.id:
        raise AuthorizationError('Patients can only create appointments for themselves')


def ensure_appointment_participant(user, appointment, action='access'):
    if not appointment.involves(user.id):
        raise AuthorizationError(f'Not authorized to {action} this appointment')


def ensure_status_transition(current, new):
    if new == current:
        return
    if new not in STATUS_TRANSITIONS[current]:
        raise ValidationError.for_field(
            'status',
            f"Cannot change status from '{current.value}' to '{new.value}'"
        )


def ensure_message_receiver(user, message):
    if message.receiver_id != user.id:
        raise AuthorizationError('Only the receiver can mark a message as read')


def ensure_can_view_medical_records(user, patient_id, storage):
    if user.role == Role.PATIENT:
        if patient_id != user.id:
            raise AuthorizationError('Patients can only view their own medical records')
        return
    # Doctors need an assignment or a record of their own for this patient
    if not (storage.is_patient_assigned(user.id, patient_id)
            or storage.has_written_medical_record(user.id, patient_id)):
        raise AuthorizationError('Patient is not assigned to this doctor')


def ensure_file_owner(user, file):
    if file.owner_id != user.id:
        raise AuthorizationError('Not authorized to access this file')
