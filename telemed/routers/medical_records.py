from flask import Blueprint, request, jsonify
from ..models import Role
from ..schemas import validate, MedicalRecordCreate
from ..storage import storage
from ..utils.errors import NotFoundError, ValidationError
from ..utils.log_utils import log_record
from ..utils.permissions import ensure_doctor, ensure_can_view_medical_records
from .auth import api_login_required, get_caller

medical_records_bp = Blueprint('medical_records', __name__, url_prefix='/api/medical-records')


# Add a record to a patient's history (doctors only), dated today
@medical_records_bp.route('', methods=['POST'])
@api_login_required
def create_medical_record():
    caller = get_caller()
    ensure_doctor(caller, 'create medical records')

    data = validate(MedicalRecordCreate, request.get_json(silent=True))
    if storage.get_user(data.patient_id) is None:
        raise NotFoundError('Patient not found')

    fields = data.model_dump()
    fields['doctor_id'] = caller.id
    record = storage.create_medical_record(fields)

    log_record(
        message=f'Medical record {record.id} created',
        details={
            'record_id': record.id,
            'patient_id': record.patient_id,
            'record_type': record.record_type.value,
            'title': record.title
        },
        user_id=caller.id
    )

    return jsonify({
        'success': True,
        'message': 'Medical record created',
        'data': record.to_dict()
    }), 201


# Patients get their own history; doctors name the patient with ?patientId=
@medical_records_bp.route('', methods=['GET'])
@api_login_required
def get_medical_records():
    caller = get_caller()

    if caller.role == Role.PATIENT:
        patient_id = caller.id
        doctor_id = None
    else:
        patient_id = request.args.get('patientId', '').strip()
        if not patient_id:
            raise ValidationError.for_field('patientId', 'Patient ID is required')
        # Doctors only see the entries they wrote
        doctor_id = caller.id

    ensure_can_view_medical_records(caller, patient_id, storage)
    records = storage.get_medical_records_by_patient(patient_id, doctor_id=doctor_id)

    return jsonify({
        'success': True,
        'data': [record.to_dict() for record in records]
    })
