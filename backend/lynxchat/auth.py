from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy import or_
from lynxchat import db
from lynxchat.models import User

auth = Blueprint('auth', __name__)


@auth.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not username or not email or not password:
        return jsonify({'error': 'Please fill in all fields'}), 400
    if len(username) < 3 or len(username) > 20:
        return jsonify({'error': 'Username must be between 3 and 20 characters'}), 400
    if len(password) < 6:
        return jsonify({'error': 'Password must be at least 6 characters'}), 400
    if User.query.filter(or_(User.username == username, User.email == email)).first():
        return jsonify({'error': 'Username or email already exists'}), 400

    user = User(username=username, email=email, status='online')
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    login_user(user, remember=True)
    current_app.logger.info(f"[register] user={user.username}")
    return jsonify({'user': user.to_dict()}), 201


@auth.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    login_name = (data.get('email') or data.get('username') or '').strip()
    password = data.get('password') or ''
    if not login_name or not password:
        return jsonify({'error': 'Please fill in all fields'}), 400

    user = User.query.filter(or_(User.email == login_name.lower(), User.username == login_name)).first()
    if not user or not user.check_password(password):
        return jsonify({'error': 'Invalid email or password'}), 401

    user.status = 'online'
    db.session.commit()
    login_user(user, remember=True)
    return jsonify({'user': user.to_dict()})


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    current_user.status = 'offline'
    db.session.commit()
    logout_user()
    return jsonify({'message': 'Logged out successfully.'})


@auth.route('/me')
@login_required
def me():
    return jsonify({'user': current_user.to_dict()})
