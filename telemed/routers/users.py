from flask import Blueprint, jsonify
from ..models import Role
from ..storage import storage
from .auth import api_login_required, role_required, get_caller

users_bp = Blueprint('users', __name__, url_prefix='/api')


# All doctors
@users_bp.route('/doctors', methods=['GET'])
@api_login_required
def get_doctors():
    doctors = storage.get_users_by_role(Role.DOCTOR)
    return jsonify({
        'success': True,
        'data': [doctor.to_dict() for doctor in doctors]
    })


# Doctors the calling patient is assigned to
@users_bp.route('/doctors/mine', methods=['GET'])
@api_login_required
def get_my_doctors():
    doctors = storage.get_patient_doctors(get_caller().id)
    return jsonify({
        'success': True,
        'data': [doctor.to_dict() for doctor in doctors]
    })


# Patients assigned to the calling doctor
@users_bp.route('/patients', methods=['GET'])
@role_required(Role.DOCTOR, 'Only doctors can view patients')
def get_patients():
    patients = storage.get_doctor_patients(get_caller().id)
    return jsonify({
        'success': True,
        'data': [patient.to_dict() for patient in patients]
    })
