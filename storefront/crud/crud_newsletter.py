# storefront/crud/crud_newsletter.py

from typing import Optional

from sqlalchemy.orm import Session

from .base import CRUDBase
from ..models import NewsletterSubscriber
from ..schemas import NewsletterSubscribe


class CRUDNewsletter(CRUDBase[NewsletterSubscriber, NewsletterSubscribe, NewsletterSubscribe]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[NewsletterSubscriber]:
        return db.query(NewsletterSubscriber).filter(NewsletterSubscriber.email == email.lower()).first()

    def create(self, db: Session, *, obj_in: NewsletterSubscribe, user_id: Optional[int] = None) -> NewsletterSubscriber:
        """Store the address in lowercase, linked to a registered user when there is one."""
        db_obj = self.model(email=obj_in.email.lower(), user_id=user_id)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj


newsletter = CRUDNewsletter(NewsletterSubscriber)
