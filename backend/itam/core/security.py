"""
Password hashing used when the API accepts invitations, signups and logins.

Services receive the hasher as a callable so deployments can plug in their
identity provider's scheme instead.
"""
from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return check_password_hash(hashed, password)
    except ValueError:
        # Unknown or malformed hash method
        return False
