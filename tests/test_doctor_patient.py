from telemed.models import DoctorPatient


def test_assignment_is_idempotent(app, patient_client, doctor_client):
    for _ in range(2):
        response = doctor_client.post('/api/doctor-patient/assign', json={'patientId': 'patient-1'})
        assert response.status_code == 204

    with app.app_context():
        assert DoctorPatient.query.count() == 1


def test_patients_lists_only_assigned(patient_client, doctor_client, make_user):
    make_user('patient-2')
    doctor_client.post('/api/doctor-patient/assign', json={'patientId': 'patient-1'})

    response = doctor_client.get('/api/patients')
    assert response.status_code == 200
    assert [p['id'] for p in response.get_json()['data']] == ['patient-1']


def test_patients_listing_is_doctor_only(patient_client):
    response = patient_client.get('/api/patients')
    assert response.status_code == 403
    assert response.get_json()['message'] == 'Only doctors can view patients'


def test_my_doctors(patient_client, doctor_client, make_user):
    make_user('doctor-2', role='doctor', specialty='Neurology')
    doctor_client.post('/api/doctor-patient/assign', json={'patientId': 'patient-1'})

    data = patient_client.get('/api/doctors/mine').get_json()['data']
    assert [d['id'] for d in data] == ['doctor-1']


def test_list_doctors(patient_client, doctor_client, make_user):
    make_user('doctor-2', role='doctor', specialty='Neurology')

    data = patient_client.get('/api/doctors').get_json()['data']
    assert sorted(d['id'] for d in data) == ['doctor-1', 'doctor-2']
    assert all('specialty' in d for d in data)


def test_patient_cannot_assign(patient_client):
    response = patient_client.post('/api/doctor-patient/assign', json={'patientId': 'patient-1'})
    assert response.status_code == 403


def test_assign_unknown_patient(doctor_client):
    response = doctor_client.post('/api/doctor-patient/assign', json={'patientId': 'ghost'})
    assert response.status_code == 404


def test_assign_a_doctor(doctor_client, make_user):
    make_user('doctor-2', role='doctor')
    response = doctor_client.post('/api/doctor-patient/assign', json={'patientId': 'doctor-2'})
    assert response.status_code == 400
    assert 'patientId' in response.get_json()['errors']


def test_assign_requires_patient_id(doctor_client):
    response = doctor_client.post('/api/doctor-patient/assign', json={})
    assert response.status_code == 400
