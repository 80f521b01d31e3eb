"""
Identity Service

Session-cookie sign-in for the planner and the signals fired when the
signed-in user changes.
"""

import logging
import secrets
from collections import namedtuple

from blinker import Namespace
from flask import has_request_context, session
from werkzeug.security import check_password_hash, generate_password_hash

from constants import EMAIL_RE, MAX_LENGTHS
from models import User, db
from .errors import UniqueViolation, ValidationError

logger = logging.getLogger(__name__)

CurrentUser = namedtuple('CurrentUser', ['id', 'email'])

_signals = Namespace()

# Sent with the CurrentUser as sender and the browser session's scope as
# ``scope``. Receivers must ignore scopes that are not their own.
user_signed_in = _signals.signal('user-signed-in')
user_signed_out = _signals.signal('user-signed-out')

MIN_PASSWORD_LENGTH = 6


def normalize_email(email):
    return (email or '').strip().lower()


def validate_email(email):
    email = normalize_email(email)
    if not email or len(email) > MAX_LENGTHS['email'] or not EMAIL_RE.match(email):
        raise ValidationError('Please enter a valid email address')
    return email


def get_current_user():
    """Return the signed-in CurrentUser, or None for anonymous callers."""
    user_id = session.get('user_id')
    if user_id is None:
        return None
    user = db.session.get(User, user_id)
    if user is None:
        # Account was deleted while the session was alive
        session.pop('user_id', None)
        return None
    return CurrentUser(user.id, user.email)


def sign_up(storage, email, password):
    email = validate_email(email)
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
    try:
        user = storage.insert(User, email=email, password_hash=generate_password_hash(password))
    except UniqueViolation:
        raise ValidationError('An account with this email already exists')
    logger.info("Created account %s", user.id)
    return _start_session(user)


def sign_in(storage, email, password):
    user = storage.first(User, email=normalize_email(email))
    if user is None or not check_password_hash(user.password_hash, password or ''):
        raise ValidationError('Invalid email or password')
    return _start_session(user)


def sign_out():
    current = get_current_user()
    session.pop('user_id', None)
    if current is not None:
        user_signed_out.send(current, scope=session_scope())
    return current


def _start_session(user):
    session['user_id'] = user.id
    current = CurrentUser(user.id, user.email)
    user_signed_in.send(current, scope=session_scope())
    return current


def session_scope():
    """
    Opaque id for the current browser session, created on first use.

    It survives sign-in and sign-out, so a view opened before signing in
    recognizes the change as its own. Outside a request there is no scope.
    """
    if not has_request_context():
        return None
    scope = session.get('scope')
    if scope is None:
        scope = session['scope'] = secrets.token_hex(16)
    return scope
