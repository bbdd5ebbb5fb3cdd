# storefront/routers/newsletter.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas, auth, crud
from ..database import get_db

logger = logging.getLogger(__name__)

# Subscribing is public; reading the subscriber list requires an admin.
router = APIRouter(
    prefix="/newsletter",
    tags=["Newsletter"],
)


@router.post("/subscribe", response_model=schemas.NewsletterSubscriber, status_code=status.HTTP_201_CREATED)
def subscribe(subscription: schemas.NewsletterSubscribe, db: Session = Depends(get_db)):
    """
    Subscribe an email address. When the address belongs to a registered
    user, the subscription is linked to that account.
    """
    if crud.newsletter.get_by_email(db, email=subscription.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already subscribed")

    db_user = crud.user.get_by_email(db, email=subscription.email)
    subscriber = crud.newsletter.create(db, obj_in=subscription, user_id=db_user.id if db_user else None)
    logger.info("Newsletter subscriber %s added", subscriber.id)
    return subscriber


@router.post("/unsubscribe", status_code=status.HTTP_204_NO_CONTENT)
def unsubscribe(subscription: schemas.NewsletterSubscribe, db: Session = Depends(get_db)):
    subscriber = crud.newsletter.get_by_email(db, email=subscription.email)
    if subscriber is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Email not found in subscribers")
    crud.newsletter.remove(db, id=subscriber.id)
    return None


@router.get("/subscribers", response_model=List[schemas.NewsletterSubscriber])
def read_subscribers(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_admin: models.User = Depends(auth.require_admin_user)
):
    return crud.newsletter.get_multi(db, skip=skip, limit=limit)
