from datetime import datetime
from decimal import Decimal
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.inventory import Product, Purchase, Sale
from app.services.movements import MovementRecord


def _quantize_price(value: Decimal) -> Decimal:
    return Decimal(value).quantize(Decimal("0.01"))


class InventoryStore:
    """Products, purchases and sales backed by one SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def save(self, instance):
        self.db.add(instance)
        self.db.commit()
        self.db.refresh(instance)
        return instance

    def delete(self, instance) -> None:
        self.db.delete(instance)
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def list_products(self) -> list[Product]:
        return list(self.db.scalars(select(Product).order_by(Product.name.asc())).all())

    def find_product(self, product_id: int) -> Product | None:
        return self.db.get(Product, product_id)

    def find_product_by_code(self, code: str) -> Product | None:
        return self.db.scalar(select(Product).where(Product.code == code.strip().upper()))

    def create_product(self, *, code: str, name: str, description: str | None, price: Decimal) -> Product:
        product = Product(
            code=code.strip().upper(),
            name=name.strip(),
            description=description.strip() if description and description.strip() else None,
            price=_quantize_price(price),
        )
        return self.save(product)

    def product_has_movements(self, product_id: int) -> bool:
        purchase_count = self.db.scalar(select(func.count(Purchase.id)).where(Purchase.product_id == product_id))
        sale_count = self.db.scalar(select(func.count(Sale.id)).where(Sale.product_id == product_id))
        return bool(purchase_count) or bool(sale_count)

    def list_purchases(
        self,
        *,
        product_id: int | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[Purchase]:
        query = select(Purchase).order_by(Purchase.purchased_at.desc(), Purchase.id.desc())
        if product_id is not None:
            query = query.where(Purchase.product_id == product_id)
        if date_from is not None:
            query = query.where(Purchase.purchased_at >= date_from)
        if date_to is not None:
            query = query.where(Purchase.purchased_at <= date_to)
        return list(self.db.scalars(query).unique().all())

    def find_purchase(self, purchase_id: int) -> Purchase | None:
        return self.db.get(Purchase, purchase_id)

    def create_purchase(
        self,
        *,
        product: Product,
        quantity: int,
        unit_cost: Decimal,
        purchased_at: datetime | None,
    ) -> Purchase:
        purchase = Purchase(
            product_id=product.id,
            quantity=quantity,
            unit_cost=_quantize_price(unit_cost),
            purchased_at=purchased_at or datetime.utcnow(),
        )
        return self.save(purchase)

    def list_sales(
        self,
        *,
        product_id: int | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[Sale]:
        query = select(Sale).order_by(Sale.sold_at.desc(), Sale.id.desc())
        if product_id is not None:
            query = query.where(Sale.product_id == product_id)
        if date_from is not None:
            query = query.where(Sale.sold_at >= date_from)
        if date_to is not None:
            query = query.where(Sale.sold_at <= date_to)
        return list(self.db.scalars(query).unique().all())

    def find_sale(self, sale_id: int) -> Sale | None:
        return self.db.get(Sale, sale_id)

    def create_sale(
        self,
        *,
        product: Product,
        quantity: int,
        unit_price: Decimal,
        sold_at: datetime | None,
    ) -> Sale:
        sale = Sale(
            product_id=product.id,
            quantity=quantity,
            unit_price=_quantize_price(unit_price),
            sold_at=sold_at or datetime.utcnow(),
        )
        return self.save(sale)

    def movement_records(
        self,
        *,
        product_id: int | None = None,
        exclude_purchase_id: int | None = None,
        exclude_sale_id: int | None = None,
        extra_purchases: Iterable[MovementRecord] = (),
        extra_sales: Iterable[MovementRecord] = (),
    ) -> tuple[tuple[MovementRecord, ...], tuple[MovementRecord, ...]]:
        """
        Snapshot of stored movements as ledger input, keyed by product code.

        Excluded ids drop a stored row so that an edited row can be replaced
        through ``extra_purchases`` / ``extra_sales`` before the ledger runs.
        Records are returned in insertion order.
        """
        purchase_query = (
            select(Product.code, Purchase.quantity, Purchase.purchased_at)
            .select_from(Purchase)
            .join(Product, Product.id == Purchase.product_id)
            .order_by(Purchase.id.asc())
        )
        sale_query = (
            select(Product.code, Sale.quantity, Sale.sold_at)
            .select_from(Sale)
            .join(Product, Product.id == Sale.product_id)
            .order_by(Sale.id.asc())
        )
        if product_id is not None:
            purchase_query = purchase_query.where(Purchase.product_id == product_id)
            sale_query = sale_query.where(Sale.product_id == product_id)
        if exclude_purchase_id is not None:
            purchase_query = purchase_query.where(Purchase.id != exclude_purchase_id)
        if exclude_sale_id is not None:
            sale_query = sale_query.where(Sale.id != exclude_sale_id)

        purchases = [MovementRecord(code, quantity, at) for code, quantity, at in self.db.execute(purchase_query).all()]
        sales = [MovementRecord(code, quantity, at) for code, quantity, at in self.db.execute(sale_query).all()]
        purchases.extend(extra_purchases)
        sales.extend(extra_sales)
        return tuple(purchases), tuple(sales)
