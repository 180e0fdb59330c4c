import logging
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.inventory import Product, Purchase, Sale

logger = logging.getLogger(__name__)

PRODUCT_SEED = [
    ("PEN-BLK", "Black Ballpoint Pen", "Smooth-writing 0.7mm ballpoint pen", "1.50"),
    ("NOTEBOOK-LIN", "Lined Notebook", "A5 notebook with 200 lined pages", "4.50"),
    ("MARKER-RED", "Red Permanent Marker", "Fine tip permanent marker", "2.80"),
    ("STAPLER-MID", "Mid-size Stapler", "Durable stapler for up to 20 sheets", "9.75"),
    ("FOLDER-ASM", "Assorted Folders", "Pack of 10 letter-size folders", "1.10"),
    ("TAPE-CLEAR", "Clear Packing Tape", "48mm x 50m clear tape roll", "3.50"),
]

# (code, quantity, unit cost, days ago)
PURCHASE_SEED = [
    ("PEN-BLK", 60, "0.65", 90),
    ("NOTEBOOK-LIN", 80, "3.10", 85),
    ("MARKER-RED", 45, "1.60", 82),
    ("STAPLER-MID", 25, "6.80", 80),
    ("FOLDER-ASM", 120, "0.45", 78),
    ("TAPE-CLEAR", 70, "2.10", 75),
    ("PEN-BLK", 40, "0.62", 70),
    ("NOTEBOOK-LIN", 60, "3.05", 65),
    ("MARKER-RED", 50, "1.58", 60),
    ("STAPLER-MID", 20, "6.75", 55),
    ("FOLDER-ASM", 90, "0.44", 50),
    ("TAPE-CLEAR", 60, "2.05", 45),
    ("PEN-BLK", 45, "0.63", 40),
    ("NOTEBOOK-LIN", 55, "3.00", 35),
    ("MARKER-RED", 40, "1.55", 30),
    ("STAPLER-MID", 30, "6.70", 25),
    ("FOLDER-ASM", 110, "0.43", 20),
    ("TAPE-CLEAR", 65, "2.00", 15),
    ("PEN-BLK", 35, "0.64", 10),
    ("NOTEBOOK-LIN", 45, "2.95", 5),
]

# (code, quantity, unit price, days ago)
SALE_SEED = [
    ("PEN-BLK", 25, "1.30", 75),
    ("NOTEBOOK-LIN", 30, "4.20", 70),
    ("MARKER-RED", 20, "2.60", 68),
    ("STAPLER-MID", 10, "9.10", 66),
    ("FOLDER-ASM", 60, "0.95", 64),
    ("TAPE-CLEAR", 25, "3.10", 62),
    ("PEN-BLK", 28, "1.35", 58),
    ("NOTEBOOK-LIN", 40, "4.30", 54),
    ("MARKER-RED", 18, "2.65", 52),
    ("STAPLER-MID", 12, "9.00", 48),
    ("FOLDER-ASM", 75, "0.98", 46),
    ("TAPE-CLEAR", 30, "3.20", 42),
    ("PEN-BLK", 22, "1.40", 38),
    ("NOTEBOOK-LIN", 35, "4.25", 32),
    ("MARKER-RED", 15, "2.70", 28),
    ("STAPLER-MID", 15, "9.15", 24),
    ("FOLDER-ASM", 80, "1.00", 20),
    ("TAPE-CLEAR", 35, "3.25", 16),
    ("PEN-BLK", 20, "1.45", 12),
    ("NOTEBOOK-LIN", 25, "4.35", 8),
]


def seed_demo_data(db: Session, today: datetime | None = None) -> int:
    """Inserts the demo catalogue when no products exist. Returns products inserted."""
    if db.scalar(select(func.count(Product.id))):
        return 0

    now = today or datetime.utcnow()
    products: dict[str, Product] = {}
    for code, name, description, price in PRODUCT_SEED:
        product = Product(code=code, name=name, description=description, price=Decimal(price))
        db.add(product)
        products[code] = product
    db.flush()

    for code, quantity, unit_cost, days in PURCHASE_SEED:
        db.add(
            Purchase(
                product_id=products[code].id,
                quantity=quantity,
                unit_cost=Decimal(unit_cost),
                purchased_at=now - timedelta(days=days),
            )
        )
    for code, quantity, unit_price, days in SALE_SEED:
        db.add(
            Sale(
                product_id=products[code].id,
                quantity=quantity,
                unit_price=Decimal(unit_price),
                sold_at=now - timedelta(days=days),
            )
        )
    db.commit()
    logger.info(
        "Seeded %d products, %d purchases and %d sales",
        len(products),
        len(PURCHASE_SEED),
        len(SALE_SEED),
    )
    return len(products)


if __name__ == "__main__":
    from app.core.logging import setup_logging
    from app.db.database import SessionLocal, create_tables

    setup_logging()
    create_tables()
    session = SessionLocal()
    try:
        seed_demo_data(session)
    finally:
        session.close()
