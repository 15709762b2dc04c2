"""
Authentication Routes
Handles user registration, login, and logout
"""

import logging
from datetime import datetime
from flask import Blueprint
from flask_login import login_user, logout_user, current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from ledgerdesk.models import db, User
from ledgerdesk.utils.helpers import request_data, missing_fields, json_response
from ledgerdesk.utils.company_context import get_company_context
from ledgerdesk.utils.notifications import notify_error

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__)

MIN_PASSWORD_LENGTH = 6


@bp.route('/register', methods=['POST'])
def register():
    """Create an account and log it in"""
    data = request_data()
    missing = missing_fields(data, ('email', 'password'))
    if missing:
        return json_response({'error': f"Missing required fields: {', '.join(missing)}"}, 400)

    email = data['email'].strip().lower()
    password = data['password']
    if len(password) < MIN_PASSWORD_LENGTH:
        return json_response(
            {'error': f'Password must be at least {MIN_PASSWORD_LENGTH} characters long'}, 400)

    if User.query.filter_by(email=email).first() is not None:
        return json_response({'error': 'An account with this email already exists'}, 400)

    user = User(email=email, full_name=(data.get('full_name') or '').strip())
    user.set_password(password)
    try:
        db.session.add(user)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        notify_error('Error creating account', e)
        return json_response({'error': 'Error creating account'}, 500)

    login_user(user)
    logger.info(f"Registered user {user.id}")
    return json_response({'user': user.to_dict()}, 201)


@bp.route('/login', methods=['POST'])
def login():
    """User login"""
    data = request_data()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    remember = bool(data.get('remember', False))

    user = User.query.filter_by(email=email).first()

    if user is None or not user.check_password(password):
        logger.warning(f"Failed login attempt for email: {email}")
        return json_response({'error': 'Invalid email or password'}, 401)

    if not user.is_active:
        return json_response(
            {'error': 'Your account has been deactivated. Please contact administrator.'}, 403)

    # Login successful
    login_user(user, remember=remember)
    user.last_login = datetime.utcnow()
    db.session.commit()
    logger.info(f"User {user.id} logged in")

    return json_response({'user': user.to_dict()})


@bp.route('/logout')
@login_required
def logout():
    """User logout"""
    logger.info(f"User {current_user.id} logged out")
    logout_user()
    return json_response({'message': 'You have been logged out successfully.'})


@bp.route('/me')
@login_required
def me():
    """Current user, their companies and the active one"""
    payload = {'user': current_user.to_dict()}
    payload.update(get_company_context().to_dict())
    return json_response(payload)
