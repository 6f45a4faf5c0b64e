import logging
import re

from sqlalchemy import or_

from errors import AuthenticationRequired, AuthorizationDenied, Conflict, NotFound, ValidationError
from models import db, User
from services.identity import require_subject
from services.unit_of_work import reads_storage, unit_of_work

logger = logging.getLogger(__name__)

EMAIL_REGEX = r'^[\w\.\+-]+@[\w\.-]+\.\w+$'
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6

REQUIRED_REGISTRATION_FIELDS = ('username', 'email', 'password', 'firstname', 'lastname')


def serialize_user(user, private=False):
    data = {
        "id": user.id,
        "username": user.username,
        "firstname": user.first_name,
        "lastname": user.last_name,
        "bio": user.bio or '',
        "avatar": user.avatar_url,
        "role": user.role,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
    if private:
        data["email"] = user.email
        data["status"] = user.status
    return data


def load_active_user(subject):
    """Return the subject's account, refusing deleted or banned accounts."""
    subject = require_subject(subject)
    user = db.session.get(User, subject.subject_id)
    if user is None:
        raise AuthenticationRequired("Account no longer exists")
    if user.is_banned:
        raise AuthorizationDenied("Your account has been suspended")
    return user


def _validate_username(username):
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters long", field='username')
    if not re.match(r'^[\w.]+$', username):
        raise ValidationError("Username may only contain letters, numbers, dots and underscores", field='username')


def register_user(payload, avatar=None, blob_store=None):
    fields = {key: str(payload.get(key) or '').strip() for key in REQUIRED_REGISTRATION_FIELDS}
    for key in REQUIRED_REGISTRATION_FIELDS:
        if not fields[key]:
            raise ValidationError(f"Missing field: {key}", field=key)

    _validate_username(fields['username'])
    if not re.match(EMAIL_REGEX, fields['email']):
        raise ValidationError("Invalid email format", field='email')
    if len(fields['password']) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long", field='password')

    existing = User.query.filter(
        or_(User.email == fields['email'], User.username == fields['username'])
    ).first()
    if existing:
        raise Conflict("The username or email is already registered")

    avatar_url = None
    if avatar is not None:
        avatar_url = blob_store.store(avatar.data, avatar.content_hint)

    with unit_of_work("user registration", conflict_message="The username or email is already registered") as session:
        user = User(
            username=fields['username'],
            email=fields['email'],
            first_name=fields['firstname'],
            last_name=fields['lastname'],
            bio=str(payload.get('bio') or ''),
            avatar_url=avatar_url,
            role='user',
            status='active',
        )
        user.set_password(fields['password'])
        session.add(user)

    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return user


def authenticate(identifier, password):
    """Check credentials; ``identifier`` may be the email or the username."""
    if not identifier or not password:
        raise ValidationError("Missing email or password")

    user = User.query.filter(or_(User.email == identifier, User.username == identifier)).first()
    if user is None or not user.check_password(password):
        raise AuthenticationRequired("Invalid credentials")
    if user.is_banned:
        raise AuthorizationDenied("Your account has been suspended")
    return user


@reads_storage
def is_username_available(username, viewer):
    username = (username or '').strip()
    if not username:
        raise ValidationError("Username is required", field='username')

    query = User.query.filter(User.username == username)
    if viewer.is_authenticated:
        # Editing a profile: your own current name is still "available"
        query = query.filter(User.id != viewer.subject_id)
    return query.first() is None


def update_profile(subject, payload, avatar=None, remove_avatar=False, blob_store=None):
    user = load_active_user(subject)
    changes = {}

    if payload.get('username') is not None:
        username = str(payload['username']).strip()
        _validate_username(username)
        if username != user.username:
            taken = User.query.filter(User.username == username, User.id != user.id).first()
            if taken:
                raise Conflict("Username already taken")
            changes['username'] = username

    for key, attr in (('firstname', 'first_name'), ('lastname', 'last_name')):
        if payload.get(key) is not None:
            value = str(payload[key]).strip()
            if not value:
                raise ValidationError(f"{key} cannot be empty", field=key)
            changes[attr] = value

    if payload.get('bio') is not None:
        changes['bio'] = str(payload['bio'])

    if avatar is not None:
        changes['avatar_url'] = blob_store.store(avatar.data, avatar.content_hint)
    elif remove_avatar:
        changes['avatar_url'] = None

    with unit_of_work("profile update", conflict_message="Username already taken"):
        for attr, value in changes.items():
            setattr(user, attr, value)

    logger.info("Updated profile of user %s (%s)", user.id, ", ".join(sorted(changes)) or "no changes")
    return user


@reads_storage
def get_user_by_username(username):
    user = User.query.filter_by(username=username).first()
    if user is None:
        raise NotFound("User not found")
    return user
