from flask import Blueprint, jsonify, request
from flask_login import login_required

from lynxchat import presence
from lynxchat.services import message_log

rooms_api = Blueprint('rooms_api', __name__)

MAX_HISTORY_LIMIT = 100


@rooms_api.route('/rooms/<string:room_id>/messages')
@login_required
def room_messages(room_id):
    """
    Returns the most recent messages of a room, oldest first.
    """
    limit = request.args.get('limit', default=50, type=int)
    limit = max(1, min(limit, MAX_HISTORY_LIMIT))
    messages = message_log.recent(room_id, limit)
    messages.reverse()
    return jsonify({'room': room_id, 'messages': messages})


@rooms_api.route('/presence')
@login_required
def online_users():
    """
    Lists display names that currently hold at least one live connection.
    """
    return jsonify({'online': presence.online_users()})
