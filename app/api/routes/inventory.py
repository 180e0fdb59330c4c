import logging
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError

from app.api.deps import get_inventory_store, to_naive_utc, validate_period
from app.models.inventory import Product
from app.schemas.inventory import (
    MonthlyStockSummaryOut,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    PurchaseCreate,
    PurchaseOut,
    PurchaseUpdate,
    SaleCreate,
    SaleOut,
    SaleUpdate,
    StockOut,
)
from app.services.inventory_store import InventoryStore
from app.services.movements import MovementRecord, NegativeStockError
from app.services.stock_ledger import build_monthly_stock_report, calculate_stock_balances

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def _get_product_or_404(store: InventoryStore, product_id: int) -> Product:
    product = store.find_product(product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


def _available_stock(store: InventoryStore, product: Product, *, exclude_sale_id: int | None = None) -> int:
    purchases, sales = store.movement_records(product_id=product.id, exclude_sale_id=exclude_sale_id)
    balance = calculate_stock_balances(purchases, sales).get(product.code)
    return int(balance.balance) if balance else 0


def _ensure_sale_fits(
    store: InventoryStore,
    product: Product,
    quantity: int,
    sold_at: datetime,
    *,
    exclude_sale_id: int | None = None,
) -> None:
    available = _available_stock(store, product, exclude_sale_id=exclude_sale_id)
    if quantity > available:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "Insufficient stock", "available": available},
        )

    # The total can cover a sale that is dated before the purchases supplying it.
    purchases, sales = store.movement_records(
        product_id=product.id,
        exclude_sale_id=exclude_sale_id,
        extra_sales=[MovementRecord(product.code, quantity, sold_at)],
    )
    try:
        build_monthly_stock_report(purchases, sales)
    except NegativeStockError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "Insufficient stock on the sale date", "available": available},
        ) from exc


def _ensure_purchase_change_keeps_stock(
    store: InventoryStore,
    purchase_id: int,
    affected_product_ids: set[int],
    replacement: tuple[int, MovementRecord] | None,
) -> None:
    for product_id in sorted(affected_product_ids):
        extra = [replacement[1]] if replacement and replacement[0] == product_id else []
        purchases, sales = store.movement_records(
            product_id=product_id,
            exclude_purchase_id=purchase_id,
            extra_purchases=extra,
        )
        try:
            build_monthly_stock_report(purchases, sales)
        except NegativeStockError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot modify purchase because purchased stock has already been consumed",
            ) from exc


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    store: InventoryStore = Depends(get_inventory_store),
):
    try:
        product = store.create_product(
            code=payload.code,
            name=payload.name,
            description=payload.description,
            price=payload.price,
        )
    except IntegrityError as exc:
        store.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product code already exists") from exc
    logger.info("Created product %s (%s)", product.id, product.code)
    return product


@router.get("/products", response_model=list[ProductOut])
def list_products(
    code: str | None = Query(default=None, min_length=1),
    store: InventoryStore = Depends(get_inventory_store),
):
    if code is not None:
        product = store.find_product_by_code(code)
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return [product]
    return store.list_products()


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    store: InventoryStore = Depends(get_inventory_store),
):
    return _get_product_or_404(store, product_id)


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    store: InventoryStore = Depends(get_inventory_store),
):
    product = _get_product_or_404(store, product_id)

    if payload.code is not None:
        product.code = payload.code.strip().upper()
    if payload.name is not None:
        product.name = payload.name.strip()
    if payload.description is not None:
        product.description = payload.description.strip() or None
    if payload.price is not None:
        product.price = Decimal(payload.price).quantize(Decimal("0.01"))

    try:
        product = store.save(product)
    except IntegrityError as exc:
        store.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product code already exists") from exc
    logger.info("Updated product %s", product.id)
    return product


@router.delete("/products/{product_id}", response_model=ProductOut)
def delete_product(
    product_id: int,
    store: InventoryStore = Depends(get_inventory_store),
):
    product = _get_product_or_404(store, product_id)
    if store.product_has_movements(product.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete a product with existing purchases or sales",
        )
    deleted = ProductOut.model_validate(product)
    store.delete(product)
    logger.info("Deleted product %s (%s)", deleted.id, deleted.code)
    return deleted


@router.post("/purchases", response_model=PurchaseOut, status_code=status.HTTP_201_CREATED)
def create_purchase(
    payload: PurchaseCreate,
    store: InventoryStore = Depends(get_inventory_store),
):
    product = _get_product_or_404(store, payload.product_id)
    purchase = store.create_purchase(
        product=product,
        quantity=payload.quantity,
        unit_cost=payload.unit_cost,
        purchased_at=to_naive_utc(payload.purchased_at),
    )
    logger.info("Recorded purchase %s: %s x %s", purchase.id, product.code, purchase.quantity)
    return purchase


@router.get("/purchases", response_model=list[PurchaseOut])
def list_purchases(
    product_id: int | None = Query(default=None, gt=0),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    store: InventoryStore = Depends(get_inventory_store),
):
    validate_period(date_from, date_to)
    return store.list_purchases(
        product_id=product_id,
        date_from=to_naive_utc(date_from),
        date_to=to_naive_utc(date_to),
    )


@router.get("/purchases/{purchase_id}", response_model=PurchaseOut)
def get_purchase(
    purchase_id: int,
    store: InventoryStore = Depends(get_inventory_store),
):
    purchase = store.find_purchase(purchase_id)
    if not purchase:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase not found")
    return purchase


@router.patch("/purchases/{purchase_id}", response_model=PurchaseOut)
def update_purchase(
    purchase_id: int,
    payload: PurchaseUpdate,
    store: InventoryStore = Depends(get_inventory_store),
):
    purchase = store.find_purchase(purchase_id)
    if not purchase:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase not found")

    product = _get_product_or_404(store, payload.product_id) if payload.product_id is not None else purchase.product
    new_qty = payload.quantity if payload.quantity is not None else purchase.quantity
    new_at = to_naive_utc(payload.purchased_at) if payload.purchased_at is not None else purchase.purchased_at

    _ensure_purchase_change_keeps_stock(
        store,
        purchase.id,
        {purchase.product_id, product.id},
        (product.id, MovementRecord(product.code, new_qty, new_at)),
    )

    purchase.product_id = product.id
    purchase.quantity = new_qty
    purchase.purchased_at = new_at
    if payload.unit_cost is not None:
        purchase.unit_cost = Decimal(payload.unit_cost).quantize(Decimal("0.01"))
    purchase = store.save(purchase)
    logger.info("Updated purchase %s", purchase.id)
    return purchase


@router.delete("/purchases/{purchase_id}", response_model=PurchaseOut)
def delete_purchase(
    purchase_id: int,
    store: InventoryStore = Depends(get_inventory_store),
):
    purchase = store.find_purchase(purchase_id)
    if not purchase:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase not found")

    _ensure_purchase_change_keeps_stock(store, purchase.id, {purchase.product_id}, None)

    deleted = PurchaseOut.model_validate(purchase)
    store.delete(purchase)
    logger.info("Deleted purchase %s", deleted.id)
    return deleted


@router.post("/sales", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
def create_sale(
    payload: SaleCreate,
    store: InventoryStore = Depends(get_inventory_store),
):
    product = _get_product_or_404(store, payload.product_id)
    sold_at = to_naive_utc(payload.sold_at) or datetime.utcnow()
    _ensure_sale_fits(store, product, payload.quantity, sold_at)

    sale = store.create_sale(
        product=product,
        quantity=payload.quantity,
        unit_price=payload.unit_price,
        sold_at=sold_at,
    )
    logger.info("Recorded sale %s: %s x %s", sale.id, product.code, sale.quantity)
    return sale


@router.get("/sales", response_model=list[SaleOut])
def list_sales(
    product_id: int | None = Query(default=None, gt=0),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    store: InventoryStore = Depends(get_inventory_store),
):
    validate_period(date_from, date_to)
    return store.list_sales(
        product_id=product_id,
        date_from=to_naive_utc(date_from),
        date_to=to_naive_utc(date_to),
    )


@router.get("/sales/{sale_id}", response_model=SaleOut)
def get_sale(
    sale_id: int,
    store: InventoryStore = Depends(get_inventory_store),
):
    sale = store.find_sale(sale_id)
    if not sale:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
    return sale


@router.patch("/sales/{sale_id}", response_model=SaleOut)
def update_sale(
    sale_id: int,
    payload: SaleUpdate,
    store: InventoryStore = Depends(get_inventory_store),
):
    sale = store.find_sale(sale_id)
    if not sale:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")

    product = _get_product_or_404(store, payload.product_id) if payload.product_id is not None else sale.product
    new_qty = payload.quantity if payload.quantity is not None else sale.quantity
    new_at = to_naive_utc(payload.sold_at) if payload.sold_at is not None else sale.sold_at
    _ensure_sale_fits(store, product, new_qty, new_at, exclude_sale_id=sale.id)

    sale.product_id = product.id
    sale.quantity = new_qty
    sale.sold_at = new_at
    if payload.unit_price is not None:
        sale.unit_price = Decimal(payload.unit_price).quantize(Decimal("0.01"))
    sale = store.save(sale)
    logger.info("Updated sale %s", sale.id)
    return sale


@router.delete("/sales/{sale_id}", response_model=SaleOut)
def delete_sale(
    sale_id: int,
    store: InventoryStore = Depends(get_inventory_store),
):
    sale = store.find_sale(sale_id)
    if not sale:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
    deleted = SaleOut.model_validate(sale)
    store.delete(sale)
    logger.info("Deleted sale %s", deleted.id)
    return deleted


@router.get("/stock", response_model=list[StockOut])
def list_stock(
    store: InventoryStore = Depends(get_inventory_store),
):
    purchases, sales = store.movement_records()
    balances = calculate_stock_balances(purchases, sales)

    items = []
    for product in store.list_products():
        balance = balances.get(product.code)
        items.append(
            StockOut(
                product_id=product.id,
                code=product.code,
                name=product.name,
                description=product.description,
                price=product.price,
                purchased=int(balance.purchased) if balance else 0,
                sold=int(balance.sold) if balance else 0,
                on_hand=int(balance.balance) if balance else 0,
            )
        )
    return items


@router.get("/stock/monthly", response_model=dict[str, list[MonthlyStockSummaryOut]])
def monthly_stock(
    product_id: int | None = Query(default=None, gt=0),
    store: InventoryStore = Depends(get_inventory_store),
):
    if product_id is not None:
        _get_product_or_404(store, product_id)
    purchases, sales = store.movement_records(product_id=product_id)
    report = build_monthly_stock_report(purchases, sales)
    return {
        sku: [
            MonthlyStockSummaryOut(
                month=summary.month.label,
                purchases=int(summary.purchases),
                sales=int(summary.sales),
                closing_balance=int(summary.closing_balance),
            )
            for summary in summaries
        ]
        for sku, summaries in report.items()
    }
