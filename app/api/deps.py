from datetime import datetime

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.services.inventory_store import InventoryStore
from app.services.movements import to_utc


def get_inventory_store(db: Session = Depends(get_db)) -> InventoryStore:
    return InventoryStore(db)


def to_naive_utc(value: datetime | None) -> datetime | None:
    # Timestamps are stored as naive UTC.
    if value is None:
        return None
    return to_utc(value).replace(tzinfo=None)


def validate_period(date_from: datetime | None, date_to: datetime | None) -> None:
    date_from = to_naive_utc(date_from)
    date_to = to_naive_utc(date_to)
    if date_from is not None and date_to is not None and date_from > date_to:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start must not be after end",
        )
