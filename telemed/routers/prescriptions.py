from flask import Blueprint, request, jsonify
from ..models import Role
from ..schemas import validate, PrescriptionCreate
from ..storage import storage
from ..utils.errors import NotFoundError
from ..utils.log_utils import log_prescription
from ..utils.permissions import ensure_doctor
from .auth import api_login_required, get_caller

prescriptions_bp = Blueprint('prescriptions', __name__, url_prefix='/api/prescriptions')


# Issue a prescription (doctors only)
@prescriptions_bp.route('', methods=['POST'])
@api_login_required
def create_prescription():
    caller = get_caller()
    # Role is checked before the payload so non-doctors always get 403
    ensure_doctor(caller, 'create prescriptions')

    data = validate(PrescriptionCreate, request.get_json(silent=True))
    if storage.get_user(data.patient_id) is None:
        raise NotFoundError('Patient not found')

    fields = data.model_dump()
    fields['doctor_id'] = caller.id
    prescription = storage.create_prescription(fields)

    log_prescription(
        message=f'Prescription {prescription.id} issued',
        details={
            'prescription_id': prescription.id,
            'patient_id': prescription.patient_id,
            'medication_name': prescription.medication_name
        },
        user_id=caller.id
    )

    return jsonify({
        'success': True,
        'message': 'Prescription created',
        'data': prescription.to_dict()
    }), 201


@prescriptions_bp.route('', methods=['GET'])
@api_login_required
def get_prescriptions():
    caller = get_caller()
    if caller.role == Role.DOCTOR:
        prescriptions = storage.get_prescriptions_by_doctor(caller.id)
    else:
        prescriptions = storage.get_prescriptions_by_patient(caller.id)

    return jsonify({
        'success': True,
        'data': [prescription.to_dict() for prescription in prescriptions]
    })


# Active prescriptions where the caller is the patient
@prescriptions_bp.route('/active', methods=['GET'])
@api_login_required
def get_active_prescriptions():
    prescriptions = storage.get_active_prescriptions_by_patient(get_caller().id)
    return jsonify({
        'success': True,
        'data': [prescription.to_dict() for prescription in prescriptions]
    })
