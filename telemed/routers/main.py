from flask import Blueprint, jsonify, current_app

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    return jsonify({
        'message': 'Telemedicine API',
        'status': 'success'
    })


@main_bp.route('/api/health')
def health_check():
    return jsonify({
        'status': 'healthy',
        'version': current_app.config.get('SYSTEM_VERSION', '1.0.0')
    })
