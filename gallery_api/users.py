# gallery_api/users.py
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .errors import NotFoundError, ValidationError
from .models import User


def get_owner(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).one_or_none()
    if user is None:
        raise NotFoundError("Utilisateur introuvable.")
    return user


def search_users(db: Session, query: str):
    query = (query or "").strip()
    if not query:
        raise ValidationError("Aucune recherche fournie.")
    pattern = f"%{query}%"
    return (
        db.query(User)
        .filter(or_(User.first_name.ilike(pattern), User.last_name.ilike(pattern)))
        .order_by(User.id.asc())
        .all()
    )


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "fullName": user.full_name,
    }
