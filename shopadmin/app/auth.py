"""Demo-grade credential check. Passwords are compared in plain text; this is
not meant for production use."""
from typing import Optional

from sqlalchemy.orm import Session

from ..data.models import User
from ..schemas.io_models import AppUser


def authenticate(db: Session, email: str, password: str) -> Optional[AppUser]:
    user = (
        db.query(User)
        .filter(User.email == email.strip(), User.password == password)
        .first()
    )
    if user is None:
        return None
    # never hand the password column back to the caller
    return AppUser(id=user.id, email=user.email, full_name=user.full_name, role=user.role)
