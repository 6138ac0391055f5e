from flask import Blueprint, request, jsonify
from ..schemas import validate, MessageCreate
from ..storage import storage
from ..utils.errors import NotFoundError
from ..utils.log_utils import log_message
from ..utils.permissions import ensure_message_receiver
from .auth import api_login_required, get_caller

messages_bp = Blueprint('messages', __name__, url_prefix='/api/messages')


# Send a message; the sender is always the caller
@messages_bp.route('', methods=['POST'])
@api_login_required
def send_message():
    caller = get_caller()
    data = validate(MessageCreate, request.get_json(silent=True))

    if storage.get_user(data.receiver_id) is None:
        raise NotFoundError('Receiver not found')

    message = storage.create_message({
        'sender_id': caller.id,
        'receiver_id': data.receiver_id,
        'content': data.content
    })

    log_message(
        message=f'Message {message.id} sent',
        details={'message_id': message.id, 'receiver_id': message.receiver_id},
        user_id=caller.id
    )

    return jsonify({
        'success': True,
        'message': 'Message sent',
        'data': message.to_dict()
    }), 201


# Every message the caller sent or received
@messages_bp.route('', methods=['GET'])
@api_login_required
def get_messages():
    messages = storage.get_messages_by_user(get_caller().id)
    return jsonify({
        'success': True,
        'data': [message.to_dict() for message in messages]
    })


@messages_bp.route('/conversation/<user_id>', methods=['GET'])
@api_login_required
def get_conversation(user_id):
    messages = storage.get_conversation(get_caller().id, user_id)
    return jsonify({
        'success': True,
        'data': [message.to_dict() for message in messages]
    })


@messages_bp.route('/<int:message_id>/read', methods=['POST'])
@api_login_required
def mark_as_read(message_id):
    message = storage.get_message(message_id)
    if message is None:
        raise NotFoundError('Message not found')
    ensure_message_receiver(get_caller(), message)

    storage.mark_message_as_read(message_id)
    return '', 204
