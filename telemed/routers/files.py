from flask import Blueprint, request, jsonify, current_app, send_from_directory
from flask_login import current_user
from werkzeug.utils import secure_filename
from sqlalchemy.exc import SQLAlchemyError
from ..models import RelatedTo
from ..storage import storage
from ..utils.errors import AuthenticationError, NotFoundError, ValidationError
from ..utils.log_utils import log_file
from ..utils.permissions import ensure_file_owner
from .auth import api_login_required, get_caller
from datetime import datetime
import os
import uuid

files_bp = Blueprint('files', __name__, url_prefix='/api/files')
uploads_bp = Blueprint('uploads', __name__, url_prefix='/uploads')


def parse_related_to(kind, related_id):
    try:
        return RelatedTo.parse(kind, related_id)
    except ValueError as e:
        raise ValidationError.for_field('relatedTo', str(e))


def save_upload(file):
    """Write the upload under UPLOAD_FOLDER and describe what was stored."""
    original_filename = secure_filename(file.filename) or 'upload'
    # UUID and timestamp keep stored names unique
    unique_filename = f"{uuid.uuid4().hex}_{datetime.now().strftime('%Y%m%d%H%M%S')}_{original_filename}"
    filepath = os.path.join(current_app.config['UPLOAD_FOLDER'], unique_filename)

    file.save(filepath)

    return {
        'filename': unique_filename,
        'original_name': file.filename,
        'mime_type': file.mimetype or 'application/octet-stream',
        'size': os.path.getsize(filepath),
        'path': filepath
    }


# Upload a file (multipart field "file")
@files_bp.route('/upload', methods=['POST'])
@api_login_required
def upload_file():
    caller = get_caller()

    file = request.files.get('file')
    if file is None or not file.filename:
        raise ValidationError.for_field('file', 'No file uploaded')

    related_to = parse_related_to(request.form.get('relatedToType'), request.form.get('relatedToId'))

    stored = save_upload(file)
    stored['owner_id'] = caller.id
    stored['related_to'] = related_to
    try:
        saved = storage.save_file(stored)
    except SQLAlchemyError:
        # Do not leave an orphaned file on disk
        os.remove(stored['path'])
        raise

    log_file(
        message=f'File {saved.id} uploaded',
        details={
            'file_id': saved.id,
            'original_name': saved.original_name,
            'size': saved.size,
            'related_to': related_to.to_dict() if related_to else None
        },
        user_id=caller.id
    )

    return jsonify({
        'success': True,
        'message': 'File uploaded',
        'data': saved.to_dict()
    }), 201


@files_bp.route('', methods=['GET'])
@api_login_required
def get_files():
    files = storage.get_files_by_owner(get_caller().id)
    return jsonify({
        'success': True,
        'data': [file.to_dict() for file in files]
    })


# The caller's files attached to another entity
@files_bp.route('/related/<kind>/<related_id>', methods=['GET'])
@api_login_required
def get_related_files(kind, related_id):
    related_to = parse_related_to(kind, related_id)
    files = storage.get_files_by_relation(related_to, owner_id=get_caller().id)
    return jsonify({
        'success': True,
        'data': [file.to_dict() for file in files]
    })


# Download an uploaded file; owner only unless UPLOADS_PUBLIC is set
@uploads_bp.route('/<path:filename>', methods=['GET'])
def serve_upload(filename):
    if not current_app.config.get('UPLOADS_PUBLIC'):
        if not current_user.is_authenticated:
            raise AuthenticationError('Not authenticated, please log in')
        file = storage.get_file_by_filename(filename)
        if file is None:
            raise NotFoundError('File not found')
        ensure_file_owner(get_caller(), file)

    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)
