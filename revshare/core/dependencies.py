from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session
from typing import Optional
from pydantic import ValidationError as SchemaValidationError
from revshare.common.exceptions import UpstreamError
from revshare.core.database import SessionLocal
from revshare.schemas.actor import Actor, AdminLevel
from revshare.services.transaction_feed import TransactionFeed



def get_db():
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_actor(
    x_actor_id: Optional[str] = Header(None),
    x_admin_level: Optional[str] = Header(None),
) -> Actor:
    """
    Actor identity and permission level, as forwarded by the authenticating gateway.
    Raises 401 if the caller is not identified.
    """
    if not x_actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing actor identity",
        )

    try:
        level = AdminLevel(x_admin_level.lower()) if x_admin_level else AdminLevel.none
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown admin level",
        )

    try:
        return Actor(actor_id=x_actor_id, admin_level=level)
    except SchemaValidationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid actor identity",
        )


def get_transaction_feed(request: Request) -> TransactionFeed:
    """Payment processor feed registered on the application at startup."""
    feed = getattr(request.app.state, "transaction_feed", None)
    if feed is None:
        raise UpstreamError("No payment processor feed is configured", {"feed": None})
    return feed
