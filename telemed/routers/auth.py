from flask import Blueprint, request, jsonify, session
from flask_login import login_user, logout_user, current_user
from datetime import datetime
from functools import wraps
from ..schemas import validate, CallbackRequest, IdentityClaims, ProfileUpdate
from ..storage import storage
from ..utils.errors import AuthenticationError
from ..utils.jwt_utils import decode_identity_token
from ..utils.log_utils import log_security, log_user
from ..utils.permissions import ensure_role

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def get_caller():
    """The logged in User model, unwrapped from the current_user proxy."""
    return current_user._get_current_object()


# Login check for API endpoints; answers 401 instead of redirecting
def api_login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            raise AuthenticationError('Not authenticated, please log in')
        return f(*args, **kwargs)
    return decorated_function


# Role check decorator
def role_required(role, message=None):
    def decorator(f):
        @wraps(f)
        @api_login_required
        def decorated_function(*args, **kwargs):
            ensure_role(get_caller(), role, message)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


# Identity provider callback: exchange a signed identity token for a session
@auth_bp.route('/callback', methods=['POST'])
def callback():
    payload = validate(CallbackRequest, request.get_json(silent=True))

    try:
        claims = decode_identity_token(payload.token)
    except AuthenticationError as e:
        log_security(
            message='Login failed: identity token rejected',
            details={'reason': e.message, 'login_time': datetime.now().isoformat()}
        )
        raise

    identity = validate(IdentityClaims, claims)
    user = storage.upsert_user(identity.model_dump(exclude_none=True))

    # New session id on login
    session.regenerate()
    login_user(user)
    session.permanent = True

    log_security(
        message='User logged in',
        details={
            'user_id': user.id,
            'role': user.role.value,
            'login_time': datetime.now().isoformat()
        },
        user_id=user.id
    )

    return jsonify({
        'success': True,
        'message': 'Logged in',
        'data': user.to_dict()
    })


# Logout
@auth_bp.route('/logout', methods=['POST'])
@api_login_required
def logout():
    user_id = current_user.id
    log_security(
        message=f'User logged out: {user_id}',
        details={
            'user_id': user_id,
            'logout_time': datetime.now().isoformat()
        },
        user_id=user_id
    )

    logout_user()
    session.clear()
    return jsonify({
        'success': True,
        'message': 'Logged out'
    })


# Current user
@auth_bp.route('/user', methods=['GET'])
@api_login_required
def get_current_user():
    return jsonify({
        'success': True,
        'data': get_caller().to_dict()
    })


# Update profile
@auth_bp.route('/user', methods=['PUT'])
@api_login_required
def update_current_user():
    caller = get_caller()
    profile = validate(ProfileUpdate, request.get_json(silent=True))
    fields = profile.model_dump(exclude_unset=True)

    user = storage.update_user_profile(caller.id, fields)

    log_user(
        message=f'User {user.id} updated their profile',
        details={
            'update_fields': sorted(fields.keys()),
            'update_time': datetime.now().isoformat()
        },
        user_id=user.id
    )

    return jsonify({
        'success': True,
        'message': 'Profile updated',
        'data': user.to_dict()
    })
