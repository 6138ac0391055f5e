from datetime import datetime, timedelta, timezone
from flask import current_app
import jwt
from .errors import AuthenticationError


def decode_identity_token(token):
    """
    Verify a token issued by the identity provider and return its claims.

    The token must be signed with IDENTITY_TOKEN_SECRET, carry a ``sub``
    claim and, when IDENTITY_TOKEN_AUDIENCE is configured, that audience.
    """
    audience = current_app.config.get('IDENTITY_TOKEN_AUDIENCE')
    try:
        claims = jwt.decode(
            token,
            current_app.config['IDENTITY_TOKEN_SECRET'],
            algorithms=[current_app.config.get('IDENTITY_TOKEN_ALGORITHM', 'HS256')],
            audience=audience,
            options={'require': ['sub', 'exp'], 'verify_aud': audience is not None}
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError('Identity token has expired')
    except jwt.InvalidTokenError as e:
        current_app.logger.warning(f"Rejected identity token: {str(e)}")
        raise AuthenticationError('Invalid identity token')
    return claims


def encode_identity_token(claims, expires_in=timedelta(minutes=5)):
    """Sign identity claims the way the provider does; used by seeding and tests."""
    now = datetime.now(timezone.utc)
    payload = dict(claims)
    payload.setdefault('iat', now)
    payload.setdefault('exp', now + expires_in)
    audience = current_app.config.get('IDENTITY_TOKEN_AUDIENCE')
    if audience:
        payload.setdefault('aud', audience)
    return jwt.encode(
        payload,
        current_app.config['IDENTITY_TOKEN_SECRET'],
        algorithm=current_app.config.get('IDENTITY_TOKEN_ALGORITHM', 'HS256')
    )
