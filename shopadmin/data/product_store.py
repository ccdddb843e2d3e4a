"""Product lookup helpers shared by the CRUD agents.

Name resolution is a case-insensitive partial match. When several products
match, the one with the lowest id wins; no disambiguation is attempted.
"""
from typing import Optional

from sqlalchemy.orm import Session

from .models import Product, ProductStock


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def resolve_product(db: Session, product_id: Optional[int] = None, name: Optional[str] = None) -> Optional[Product]:
    """Resolve an id or a loose name to exactly one product (or None)."""
    if product_id:
        return db.query(Product).filter(Product.id == product_id).first()
    if name:
        pattern = f"%{_escape_like(name.strip())}%"
        return (
            db.query(Product)
            .filter(Product.name.ilike(pattern, escape="\\"))
            .order_by(Product.id.asc())
            .first()
        )
    return None


def search_products(db: Session, product_id: Optional[int] = None, text: Optional[str] = None):
    q = db.query(Product).order_by(Product.id.asc())
    if product_id:
        q = q.filter(Product.id == product_id)
    if text:
        q = q.filter(Product.name.ilike(f"%{_escape_like(text.strip())}%", escape="\\"))
    return q.all()


def get_stock_row(db: Session, product_id: int) -> Optional[ProductStock]:
    return db.query(ProductStock).filter(ProductStock.product_id == product_id).first()


def stock_quantity(db: Session, product_id: int) -> int:
    """Current stock; a missing stock row counts as zero."""
    row = get_stock_row(db, product_id)
    return row.quantity if row else 0


def set_stock(db: Session, product_id: int, quantity: int) -> ProductStock:
    """Overwrite a product's stock, creating the row when it does not exist."""
    row = get_stock_row(db, product_id)
    if row is None:
        row = ProductStock(product_id=product_id, quantity=quantity)
        db.add(row)
    else:
        row.quantity = quantity
    return row


def format_price(amount, label: str = "Rp") -> str:
    """Format whole currency units with dot thousands separators (1.500.000)."""
    return f"{label} {int(amount or 0):,}".replace(",", ".")
