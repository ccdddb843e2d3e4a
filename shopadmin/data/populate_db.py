from .database import SessionLocal, create_tables
from .models import Product, ProductStock, User, UserRole

DEMO_USERS = [
    {"email": "admin@shop.local", "full_name": "Shop Admin", "role": UserRole.admin, "password": "admin123"},
    {"email": "staff@shop.local", "full_name": "Shop Staff", "role": UserRole.staff, "password": "staff123"},
]

DEMO_PRODUCTS = [
    # (name, category, price, description, stock)
    ("Swivel Office Chair", "Chairs", 850000, "Ergonomic chair with adjustable height", 12),
    ("Gaming Chair", "Chairs", 1500000, "Reclining chair with lumbar pillow", 5),
    ("2-Seater Sofa", "Sofas", 3200000, "Fabric sofa, grey", 3),
    ("Oak Dining Table", "Tables", 2750000, None, 4),
    ("Bedside Cabinet", "Storage", 450000, "Two drawers", 20),
]


def populate(session_factory=SessionLocal, bind=None):
    """Seed demo users and products when the tables are empty."""
    # Ensure tables are created
    create_tables(bind)

    db = session_factory()
    try:
        if db.query(User).count() == 0:
            for data in DEMO_USERS:
                db.add(User(**data))
        if db.query(Product).count() == 0:
            for name, category, price, description, stock in DEMO_PRODUCTS:
                product = Product(name=name, category=category, price=price, description=description)
                db.add(product)
                db.flush()
                db.add(ProductStock(product_id=product.id, quantity=stock))
        db.commit()
        print("Successfully populated the demo data.")
    except Exception as e:
        db.rollback()
        print(f"Error populating demo data: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    populate()
