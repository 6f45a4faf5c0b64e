"""Who is making the request.

Read paths never require a credential: ``current_viewer()`` returns either a
``Verified`` subject or ``ANONYMOUS`` and never raises. Write paths are guarded
with ``@jwt_required()`` and then call ``current_subject()``.
"""
from dataclasses import dataclass

from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from errors import AuthenticationRequired


@dataclass(frozen=True)
class Verified:
    subject_id: int
    role: str = 'user'

    is_authenticated = True

    @property
    def is_admin(self):
        return self.role == 'admin'


class Anonymous:
    is_authenticated = False
    is_admin = False
    subject_id = None
    role = None

    def __repr__(self):
        return 'Anonymous()'


ANONYMOUS = Anonymous()


def _viewer_from_token():
    identity = get_jwt_identity()
    if identity is None:
        return ANONYMOUS
    try:
        subject_id = int(identity)
    except (TypeError, ValueError):
        return ANONYMOUS
    return Verified(subject_id=subject_id, role=get_jwt().get('role', 'user'))


def current_viewer():
    """Soft authentication: a bad or missing credential means anonymous."""
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError):
        return ANONYMOUS
    return _viewer_from_token()


def current_subject():
    """Subject of a request already verified by ``@jwt_required()``."""
    viewer = _viewer_from_token()
    if not viewer.is_authenticated:
        raise AuthenticationRequired()
    return viewer


def require_subject(viewer):
    if viewer is None or not viewer.is_authenticated:
        raise AuthenticationRequired()
    return viewer


def issue_token(user):
    return create_access_token(
        identity=str(user.id),
        additional_claims={"role": user.role, "username": user.username},
    )
