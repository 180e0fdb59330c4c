from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

MovementType = Literal["purchase", "sale"]
ReportFormat = Literal["json", "csv"]


class ProductCreate(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=160)
    description: str | None = None
    price: Decimal = Field(ge=0)


class ProductUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=64)
    name: str | None = Field(default=None, min_length=1, max_length=160)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)


class ProductOut(BaseModel):
    id: int
    code: str
    name: str
    description: str | None
    price: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProductRefOut(BaseModel):
    id: int
    code: str
    name: str

    model_config = {"from_attributes": True}


class PurchaseCreate(BaseModel):
    product_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    unit_cost: Decimal = Field(ge=0)
    purchased_at: datetime | None = None


class PurchaseUpdate(BaseModel):
    product_id: int | None = Field(default=None, gt=0)
    quantity: int | None = Field(default=None, gt=0)
    unit_cost: Decimal | None = Field(default=None, ge=0)
    purchased_at: datetime | None = None


class PurchaseOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_cost: Decimal
    purchased_at: datetime
    created_at: datetime
    updated_at: datetime
    product: ProductRefOut | None = None

    model_config = {"from_attributes": True}


class SaleCreate(BaseModel):
    product_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    sold_at: datetime | None = None


class SaleUpdate(BaseModel):
    product_id: int | None = Field(default=None, gt=0)
    quantity: int | None = Field(default=None, gt=0)
    unit_price: Decimal | None = Field(default=None, ge=0)
    sold_at: datetime | None = None


class SaleOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    sold_at: datetime
    created_at: datetime
    updated_at: datetime
    product: ProductRefOut | None = None

    model_config = {"from_attributes": True}


class StockOut(BaseModel):
    product_id: int
    code: str
    name: str
    description: str | None
    price: Decimal
    purchased: int
    sold: int
    on_hand: int


class MonthlyStockSummaryOut(BaseModel):
    month: str
    purchases: int
    sales: int
    closing_balance: int


class ReportSummaryOut(BaseModel):
    total_products: int
    total_purchases: int
    total_sales: int
    total_revenue: Decimal
    total_cost: Decimal
    net: Decimal


class ReportRowOut(BaseModel):
    month: str
    units_purchased: int
    units_sold: int
    revenue: Decimal
    cost: Decimal
    net: Decimal


class DetailedReportRowOut(BaseModel):
    id: int
    type: MovementType
    product_id: int
    product_code: str
    product_name: str
    quantity: int
    unit_value: Decimal
    total: Decimal
    date: datetime


class ReportOut(BaseModel):
    period_start: datetime | None
    period_end: datetime | None
    summary: ReportSummaryOut
    rows: list[ReportRowOut]
    details: list[DetailedReportRowOut]


class ProductReportOut(BaseModel):
    product_id: int
    code: str
    name: str
    price: Decimal
    total_purchased: int
    total_purchase_value: Decimal
    total_sold: int
    total_sales_value: Decimal
    stock: int
    stock_value: Decimal
    period_start: datetime | None
    period_end: datetime | None
