import io
import os

from telemed import create_app
from telemed.models import db
from telemed.utils.jwt_utils import encode_identity_token


def upload(client, content=b'blood panel results', name='results.txt', **form):
    data = {'file': (io.BytesIO(content), name), **form}
    return client.post('/api/files/upload', data=data, content_type='multipart/form-data')


def test_upload_file(app, patient_client):
    response = upload(patient_client)

    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['ownerId'] == 'patient-1'
    assert data['originalName'] == 'results.txt'
    assert data['size'] == len(b'blood panel results')
    assert data['relatedTo'] is None
    assert data['url'] == f"/uploads/{data['filename']}"
    assert os.path.exists(os.path.join(app.config['UPLOAD_FOLDER'], data['filename']))


def test_upload_requires_file(patient_client):
    response = patient_client.post('/api/files/upload', data={}, content_type='multipart/form-data')
    assert response.status_code == 400
    assert 'file' in response.get_json()['errors']


def test_upload_size_limit(patient_client):
    response = upload(patient_client, content=b'x' * (5 * 1024 * 1024 + 1))
    assert response.status_code == 413
    assert response.get_json()['success'] is False


def test_upload_with_relation(patient_client):
    response = upload(patient_client, relatedToType='appointment', relatedToId='12')
    assert response.status_code == 201
    assert response.get_json()['data']['relatedTo'] == {'kind': 'appointment', 'id': 12}

    related = patient_client.get('/api/files/related/appointment/12').get_json()['data']
    assert [f['id'] for f in related] == [response.get_json()['data']['id']]


def test_upload_with_bad_relation(patient_client):
    assert upload(patient_client, relatedToType='invoice', relatedToId='1').status_code == 400
    assert upload(patient_client, relatedToType='appointment').status_code == 400
    response = upload(patient_client, relatedToType='appointment', relatedToId='abc')
    assert response.status_code == 400
    assert 'relatedTo' in response.get_json()['errors']


def test_related_listing_rejects_unknown_kind(patient_client):
    assert patient_client.get('/api/files/related/invoice/1').status_code == 400


def test_related_listing_is_owner_scoped(patient_client, doctor_client):
    upload(patient_client, relatedToType='medical-record', relatedToId='3')
    upload(doctor_client, relatedToType='medical-record', relatedToId='3')

    data = doctor_client.get('/api/files/related/medical-record/3').get_json()['data']
    assert [f['ownerId'] for f in data] == ['doctor-1']


def test_list_own_files(patient_client, doctor_client):
    upload(patient_client, name='a.txt')
    upload(doctor_client, name='b.txt')

    data = patient_client.get('/api/files').get_json()['data']
    assert [f['originalName'] for f in data] == ['a.txt']


def test_uploads_are_owner_only(app, client, patient_client, doctor_client):
    url = upload(patient_client).get_json()['data']['url']

    response = patient_client.get(url)
    assert response.status_code == 200
    assert response.data == b'blood panel results'
    response.close()

    assert client.get(url).status_code == 401
    assert doctor_client.get(url).status_code == 403


def test_unknown_upload(patient_client):
    assert patient_client.get('/uploads/missing.txt').status_code == 404


def test_public_uploads(tmp_path):
    app = create_app('testing', {
        'UPLOAD_FOLDER': str(tmp_path / 'public'),
        'UPLOADS_PUBLIC': True
    })
    try:
        with app.app_context():
            token = encode_identity_token({'sub': 'patient-1'})
        owner = app.test_client()
        owner.post('/api/auth/callback', json={'token': token})
        url = upload(owner).get_json()['data']['url']

        response = app.test_client().get(url)
        assert response.status_code == 200
        response.close()
    finally:
        with app.app_context():
            db.session.remove()
            db.drop_all()
