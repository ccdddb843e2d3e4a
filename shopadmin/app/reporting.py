"""Dashboard figures: product/stock totals and confirmed purchase revenue."""
import datetime
from collections import OrderedDict
from typing import Optional

from sqlalchemy.orm import Session

from ..data.models import Product, Purchase, PurchaseStatus
from ..schemas.io_models import CategoryStock, DailyPurchaseTotal, DashboardSummary


def _as_utc(dt: datetime.datetime) -> datetime.datetime:
    # SQLite hands back naive datetimes; they are stored in UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def build_dashboard_summary(db: Session, now: Optional[datetime.datetime] = None) -> DashboardSummary:
    now = _as_utc(now) if now else datetime.datetime.now(datetime.timezone.utc)

    products = db.query(Product).all()
    stock_total = 0
    by_category = {}
    for product in products:
        qty = product.stock.quantity if product.stock else 0
        stock_total += qty
        by_category[product.category] = by_category.get(product.category, 0) + qty

    stock_by_category = [CategoryStock(category=c, stock=s) for c, s in by_category.items()]
    stock_by_category.sort(key=lambda row: row.stock, reverse=True)

    since = now - datetime.timedelta(days=30)
    confirmed = [
        p for p in db.query(Purchase).filter(Purchase.status == PurchaseStatus.CONFIRMED).all()
        if p.created_at is not None and _as_utc(p.created_at) >= since
    ]
    total_30d = sum(p.total_price for p in confirmed)

    days = OrderedDict()
    for offset in range(6, -1, -1):
        day = (now - datetime.timedelta(days=offset)).date()
        days[day] = 0
    for p in confirmed:
        day = _as_utc(p.created_at).date()
        if day in days:
            days[day] += p.total_price

    return DashboardSummary(
        product_count=len(products),
        stock_total=stock_total,
        purchase_total_30d=total_30d,
        purchases_7d=[DailyPurchaseTotal(date=f"{d.day}/{d.month}", total=t) for d, t in days.items()],
        stock_by_category=stock_by_category,
    )
