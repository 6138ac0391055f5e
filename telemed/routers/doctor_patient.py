from flask import Blueprint, request
from ..models import Role
from ..schemas import validate, AssignPatient
from ..storage import storage
from ..utils.errors import NotFoundError, ValidationError
from ..utils.log_utils import log_assignment
from ..utils.permissions import ensure_doctor
from .auth import api_login_required, get_caller

doctor_patient_bp = Blueprint('doctor_patient', __name__, url_prefix='/api/doctor-patient')


# Assign a patient to the calling doctor; repeating an assignment is a no-op
@doctor_patient_bp.route('/assign', methods=['POST'])
@api_login_required
def assign_patient():
    caller = get_caller()
    data = validate(AssignPatient, request.get_json(silent=True))

    ensure_doctor(caller, 'assign patients')

    patient = storage.get_user(data.patient_id)
    if patient is None:
        raise NotFoundError('Patient not found')
    if not patient.has_role(Role.PATIENT):
        raise ValidationError.for_field('patientId', 'User is not a patient')

    storage.assign_patient_to_doctor(caller.id, patient.id)

    log_assignment(
        message=f'Patient {patient.id} assigned to doctor {caller.id}',
        details={'doctor_id': caller.id, 'patient_id': patient.id},
        user_id=caller.id
    )

    return '', 204
