"""
Database engine initialisation and the farm table declarations.
"""

import sys

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    JSON,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    text,
)

from farm_portal.config import get_env

metadata = MetaData()


def _id_column():
    return Column("id", String(32), primary_key=True)


def _created_at_column():
    return Column("created_at", DateTime, nullable=True)


users = Table(
    "users", metadata,
    _id_column(),
    Column("email", String(255), nullable=False, unique=True),
    Column("full_name", String(200)),
    Column("role", String(20), nullable=False),
    Column("password_hash", String(255)),
    Column("is_active", Boolean, nullable=False, default=True),
    _created_at_column(),
)

animals = Table(
    "animals", metadata,
    _id_column(),
    Column("name", String(100), nullable=False),
    Column("animal_type", String(20), nullable=False),
    Column("breed", String(100)),
    Column("gender", String(10)),
    Column("date_of_birth", Date),
    Column("color", String(50)),
    Column("weight", Float),
    Column("status", String(20), nullable=False, default="available"),
    Column("price", Float),
    Column("facility_id", String(32)),
    Column("notes", Text),
    _created_at_column(),
)

breeding_records = Table(
    "breeding_records", metadata,
    _id_column(),
    Column("sire_id", String(32), nullable=False),
    Column("dam_id", String(32), nullable=False),
    Column("animal_type", String(20), nullable=False),
    Column("breeding_date", Date, nullable=False),
    Column("expected_birth", Date),
    Column("actual_birth", Date),
    Column("litter_size", Integer),
    Column("status", String(20), nullable=False, default="planned"),
    Column("notes", Text),
    _created_at_column(),
)

health_records = Table(
    "health_records", metadata,
    _id_column(),
    Column("animal_id", String(32), nullable=False),
    Column("veterinarian_id", String(32)),
    Column("record_type", String(20), nullable=False),
    Column("record_date", Date, nullable=False),
    Column("title", String(200), nullable=False),
    Column("description", Text),
    Column("diagnosis", Text),
    Column("medications_prescribed", JSON),
    Column("cost", Float),
    Column("follow_up_required", Boolean, default=False),
    Column("follow_up_date", Date),
    Column("next_due_date", Date),
    Column("notes", Text),
    _created_at_column(),
)

vaccinations = Table(
    "vaccinations", metadata,
    _id_column(),
    Column("animal_id", String(32), nullable=False),
    Column("vaccine_name", String(200), nullable=False),
    Column("manufacturer", String(200)),
    Column("batch_number", String(100)),
    Column("administered_date", Date, nullable=False),
    Column("administered_by", String(200)),
    Column("administration_route", String(20)),
    Column("dose_amount", String(50)),
    Column("next_due_date", Date),
    Column("notes", Text),
    _created_at_column(),
)

inventory_items = Table(
    "inventory_items", metadata,
    _id_column(),
    Column("name", String(200), nullable=False),
    Column("category", String(20), nullable=False),
    Column("animal_types", JSON),
    Column("quantity", Float, nullable=False, default=0),
    Column("unit", String(30), nullable=False),
    Column("low_stock_threshold", Float, nullable=False, default=0),
    Column("cost", Float),
    Column("supplier_id", String(32)),
    Column("last_restocked", Date),
    Column("notes", Text),
    _created_at_column(),
)

customers = Table(
    "customers", metadata,
    _id_column(),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("business_name", String(200)),
    Column("email", String(255), nullable=False),
    Column("phone", String(50)),
    Column("address", Text),
    Column("customer_type", String(20)),
    Column("notes", Text),
    _created_at_column(),
)

suppliers = Table(
    "suppliers", metadata,
    _id_column(),
    Column("name", String(200), nullable=False),
    Column("contact_person", String(200)),
    Column("email", String(255)),
    Column("phone", String(50)),
    Column("address", Text),
    Column("supplier_type", String(50)),
    Column("notes", Text),
    _created_at_column(),
)

financial_transactions = Table(
    "financial_transactions", metadata,
    _id_column(),
    Column("transaction_type", String(20), nullable=False),
    Column("category", String(50)),
    Column("amount", Float, nullable=False),
    Column("transaction_date", Date, nullable=False),
    Column("status", String(20), nullable=False, default="completed"),
    Column("payment_method", String(30)),
    Column("description", Text),
    Column("reference_number", String(100)),
    Column("customer_id", String(32)),
    Column("supplier_id", String(32)),
    Column("animal_id", String(32)),
    _created_at_column(),
)

facilities = Table(
    "facilities", metadata,
    _id_column(),
    Column("name", String(200), nullable=False),
    Column("facility_type", String(50), nullable=False),
    Column("capacity", Integer),
    Column("current_occupancy", Integer),
    Column("location", String(200)),
    Column("status", String(20)),
    Column("notes", Text),
    _created_at_column(),
)

veterinarians = Table(
    "veterinarians", metadata,
    _id_column(),
    Column("name", String(200), nullable=False),
    Column("clinic_name", String(200)),
    Column("email", String(255)),
    Column("phone", String(50), nullable=False),
    Column("specialization", String(200)),
    Column("emergency_contact", Boolean, default=False),
    Column("notes", Text),
    _created_at_column(),
)

bi_products = Table(
    "bi_products", metadata,
    _id_column(),
    Column("name", String(200), nullable=False),
    Column("product_type", String(20)),
    Column("description", Text),
    Column("price", Float, nullable=False),
    Column("unit", String(30), nullable=False),
    Column("availability", String(20)),
    _created_at_column(),
)

news = Table(
    "news", metadata,
    _id_column(),
    Column("title", String(300), nullable=False),
    Column("excerpt", Text),
    Column("content", Text, nullable=False),
    Column("category", String(50)),
    Column("published", Boolean, default=False),
    Column("published_date", Date),
    _created_at_column(),
)

farm_settings = Table(
    "farm_settings", metadata,
    _id_column(),
    Column("farm_name", String(200), nullable=False),
    Column("email", String(255)),
    Column("phone", String(50)),
    Column("address", Text),
    Column("currency", String(10)),
    _created_at_column(),
)

# Collections reachable through the generic row-store API. Identities in
# "users" are provisioned by scripts/create_user.py, not through the API.
COLLECTIONS = {
    t.name: t for t in (
        animals, breeding_records, health_records, vaccinations,
        inventory_items, customers, suppliers, financial_transactions,
        facilities, veterinarians, bi_products, news, farm_settings,
    )
}


def init_engine(db_uri: str = None):
    """Create a SQLAlchemy engine and verify the connection."""
    db_uri = db_uri or get_env("DB_URI")
    engine = create_engine(db_uri, echo=False, future=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    return engine


def create_schema(engine) -> None:
    """Create any missing farm tables."""
    metadata.create_all(engine)
    print(f"[init] Schema ready ({len(metadata.tables)} tables).")
