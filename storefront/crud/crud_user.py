# storefront/crud/crud_user.py

from sqlalchemy.orm import Session
from typing import Optional

from .base import CRUDBase
from ..models import User
from ..schemas import UserCreate
from ..security import get_password_hash


class CRUDUser(CRUDBase[User, UserCreate, UserCreate]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        """Look a user up by email, which is unique."""
        return db.query(User).filter(User.email == email.lower()).first()

    def create(self, db: Session, *, obj_in: UserCreate) -> User:
        """
        Hash the password before the user is stored; the plain
        password never reaches the database.
        """
        user_data = obj_in.model_dump(exclude={"password", "email"})

        db_obj = self.model(
            **user_data,
            email=obj_in.email.lower(),
            hashed_password=get_password_hash(obj_in.password)
        )

        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj


user = CRUDUser(User)
