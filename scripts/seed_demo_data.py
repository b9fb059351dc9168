#!/usr/bin/env python3
"""
Seed a farm database with demo livestock, inventory and finance rows.
Usage: DB_URI=sqlite:///farm.db python scripts/seed_demo_data.py
"""

import random
import uuid
from datetime import date, datetime, timedelta

from faker import Faker

from farm_portal.database import (
    animals,
    breeding_records,
    create_schema,
    customers,
    facilities,
    financial_transactions,
    health_records,
    init_engine,
    inventory_items,
    suppliers,
    vaccinations,
    veterinarians,
)
from farm_portal.metrics import GESTATION_DAYS, expected_birth_for

# --------------------------------------------------------------------
# CONFIG
# --------------------------------------------------------------------
NUM_ANIMALS = 40
NUM_CUSTOMERS = 15
NUM_SUPPLIERS = 6
NUM_VETERINARIANS = 3
NUM_TRANSACTIONS = 60

PER_ANIMAL = {
    "health_records": (0, 3),             # min, max per animal
    "vaccinations": (0, 2),
}

INVENTORY = [
    ("Rabbit pellets", "feed", ["rabbit"], "kg"),
    ("Timothy hay", "feed", ["rabbit", "guinea-pig"], "bale"),
    ("Layer mash", "feed", ["fowl"], "kg"),
    ("Dry dog food", "feed", ["dog"], "kg"),
    ("Cat litter", "bedding", ["cat"], "bag"),
    ("Pine shavings", "bedding", ["rabbit", "guinea-pig", "fowl"], "bag"),
    ("Dewormer", "medical", ["dog", "cat"], "dose"),
    ("Vitamin C drops", "medical", ["guinea-pig"], "bottle"),
    ("Water bottles", "equipment", ["rabbit", "guinea-pig"], "unit"),
]

fake = Faker()
random.seed(42)
Faker.seed(42)


# --------------------------------------------------------------------
# HELPERS
# --------------------------------------------------------------------
def new_id():
    return uuid.uuid4().hex


def random_date_within(days_back=365, days_forward=0):
    return date.today() + timedelta(days=random.randint(-days_back, days_forward))


def per_animal_count(table_name):
    lo, hi = PER_ANIMAL.get(table_name, (0, 0))
    return random.randint(lo, hi)


# --------------------------------------------------------------------
# SEED FUNCTIONS
# --------------------------------------------------------------------
def seed_facilities(conn):
    rows = [
        {"id": new_id(), "name": name, "facility_type": kind, "capacity": cap,
         "current_occupancy": random.randint(0, cap), "status": "active", "created_at": datetime.utcnow()}
        for name, kind, cap in [
            ("Rabbitry A", "hutch", 30), ("Cavy House", "pen", 20),
            ("Kennel", "kennel", 10), ("Coop", "coop", 50),
        ]
    ]
    conn.execute(facilities.insert(), rows)
    return [r["id"] for r in rows]


def seed_animals(conn, facility_ids, n=NUM_ANIMALS):
    rows = []
    for _ in range(n):
        rows.append({
            "id": new_id(),
            "name": fake.first_name(),
            "animal_type": random.choice(list(GESTATION_DAYS)),
            "breed": fake.word().title(),
            "gender": random.choice(["male", "female"]),
            "date_of_birth": random_date_within(900),
            "color": fake.color_name(),
            "weight": round(random.uniform(0.5, 30), 1),
            "status": random.choice(["available", "available", "breeding", "sold", "reserved"]),
            "price": round(random.uniform(20, 600), 2),
            "facility_id": random.choice(facility_ids),
            "created_at": datetime.utcnow() - timedelta(days=random.randint(0, 400)),
        })
    conn.execute(animals.insert(), rows)
    return rows


def seed_breeding(conn, animal_rows):
    rows = []
    for female in [a for a in animal_rows if a["gender"] == "female"]:
        males = [a for a in animal_rows if a["gender"] == "male" and a["animal_type"] == female["animal_type"]]
        if not males or random.random() < 0.5:
            continue
        bred_on = random_date_within(90, 10)
        rows.append({
            "id": new_id(),
            "sire_id": random.choice(males)["id"],
            "dam_id": female["id"],
            "animal_type": female["animal_type"],
            "breeding_date": bred_on,
            "expected_birth": expected_birth_for(bred_on, female["animal_type"]),
            "status": random.choice(["planned", "bred", "born"]),
            "notes": fake.sentence(),
            "created_at": datetime.utcnow(),
        })
    if rows:
        conn.execute(breeding_records.insert(), rows)


def seed_veterinarians(conn, n=NUM_VETERINARIANS):
    rows = [{
        "id": new_id(),
        "name": f"Dr. {fake.name()}",
        "clinic_name": f"{fake.last_name()} Veterinary Clinic",
        "email": fake.email(),
        "phone": fake.phone_number(),
        "emergency_contact": random.random() < 0.3,
        "created_at": datetime.utcnow(),
    } for _ in range(n)]
    conn.execute(veterinarians.insert(), rows)
    return [r["id"] for r in rows]


def seed_health(conn, animal_rows, vet_ids):
    records, shots = [], []
    for animal in animal_rows:
        for _ in range(per_animal_count("health_records")):
            records.append({
                "id": new_id(),
                "animal_id": animal["id"],
                "veterinarian_id": random.choice(vet_ids),
                "record_type": random.choice(["checkup", "treatment", "deworming", "dental"]),
                "record_date": random_date_within(200),
                "title": fake.sentence(nb_words=3),
                "cost": round(random.uniform(15, 250), 2),
                "next_due_date": random_date_within(20, 60) if random.random() < 0.6 else None,
                "created_at": datetime.utcnow(),
            })
        for _ in range(per_animal_count("vaccinations")):
            shots.append({
                "id": new_id(),
                "animal_id": animal["id"],
                "vaccine_name": random.choice(["RHDV2", "Myxomatosis", "Rabies", "DHPP", "FVRCP", "Marek's"]),
                "administered_date": random_date_within(300),
                "administration_route": random.choice(["injection", "oral", "nasal"]),
                "next_due_date": random_date_within(10, 90),
                "created_at": datetime.utcnow(),
            })
    if records:
        conn.execute(health_records.insert(), records)
    if shots:
        conn.execute(vaccinations.insert(), shots)


def seed_suppliers(conn, n=NUM_SUPPLIERS):
    rows = [{
        "id": new_id(),
        "name": fake.company(),
        "contact_person": fake.name(),
        "email": fake.company_email(),
        "phone": fake.phone_number(),
        "supplier_type": random.choice(["feed", "medical", "equipment"]),
        "created_at": datetime.utcnow(),
    } for _ in range(n)]
    conn.execute(suppliers.insert(), rows)
    return [r["id"] for r in rows]


def seed_inventory(conn, supplier_ids):
    rows = []
    for name, category, kinds, unit in INVENTORY:
        threshold = random.choice([5, 10, 20])
        rows.append({
            "id": new_id(),
            "name": name,
            "category": category,
            "animal_types": kinds,
            "quantity": random.randint(0, threshold * 4),
            "unit": unit,
            "low_stock_threshold": threshold,
            "cost": round(random.uniform(2, 80), 2),
            "supplier_id": random.choice(supplier_ids),
            "last_restocked": random_date_within(60),
            "created_at": datetime.utcnow(),
        })
    conn.execute(inventory_items.insert(), rows)


def seed_customers(conn, n=NUM_CUSTOMERS):
    rows = [{
        "id": new_id(),
        "first_name": fake.first_name(),
        "last_name": fake.last_name(),
        "business_name": fake.company() if random.random() < 0.3 else None,
        "email": fake.email(),
        "phone": fake.phone_number(),
        "address": fake.address(),
        "customer_type": random.choice(["individual", "business"]),
        "created_at": datetime.utcnow(),
    } for _ in range(n)]
    conn.execute(customers.insert(), rows)
    return [r["id"] for r in rows]


def seed_transactions(conn, customer_ids, supplier_ids, animal_rows, n=NUM_TRANSACTIONS):
    rows = []
    for _ in range(n):
        kind = random.choice(["sale", "sale", "income", "purchase", "expense"])
        revenue = kind in ("sale", "income")
        rows.append({
            "id": new_id(),
            "transaction_type": kind,
            "category": random.choice(["animals", "feed", "veterinary", "supplies", "by-products"]),
            "amount": round(random.uniform(10, 800), 2),
            "transaction_date": random_date_within(365),
            "status": random.choice(["completed", "completed", "completed", "pending", "cancelled"]),
            "payment_method": random.choice(["cash", "card", "bank_transfer"]),
            "description": fake.sentence(nb_words=5),
            "customer_id": random.choice(customer_ids) if revenue else None,
            "supplier_id": None if revenue else random.choice(supplier_ids),
            "animal_id": random.choice(animal_rows)["id"] if kind == "sale" else None,
            "created_at": datetime.utcnow(),
        })
    conn.execute(financial_transactions.insert(), rows)


# --------------------------------------------------------------------
# MAIN
# --------------------------------------------------------------------
def main():
    engine = init_engine()
    create_schema(engine)

    with engine.begin() as conn:
        print("Seeding facilities...")
        facility_ids = seed_facilities(conn)

        print("Seeding animals...")
        animal_rows = seed_animals(conn, facility_ids)

        print("Seeding breeding records...")
        seed_breeding(conn, animal_rows)

        print("Seeding veterinarians and health records...")
        vet_ids = seed_veterinarians(conn)
        seed_health(conn, animal_rows, vet_ids)

        print("Seeding suppliers and inventory...")
        supplier_ids = seed_suppliers(conn)
        seed_inventory(conn, supplier_ids)

        print("Seeding customers and transactions...")
        customer_ids = seed_customers(conn)
        seed_transactions(conn, customer_ids, supplier_ids, animal_rows)

        print("Done!")


if __name__ == "__main__":
    main()
