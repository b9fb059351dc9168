"""
Client-side checks applied to submitted form data before any write.
"""

import math
from datetime import date, datetime
from typing import Any, Dict, List

from farm_portal.metrics import GESTATION_DAYS, as_date
from farm_portal.store import get_table


class ValidationError(ValueError):
    """Raised with every problem found in one submission."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


REQUIRED_FIELDS = {
    "animals": ["name", "animal_type", "gender", "status"],
    "breeding_records": ["sire_id", "dam_id", "animal_type", "breeding_date"],
    "health_records": ["animal_id", "record_type", "record_date", "title"],
    "vaccinations": ["animal_id", "vaccine_name", "administered_date"],
    "inventory_items": ["name", "category", "unit"],
    "customers": ["first_name", "last_name", "email"],
    "suppliers": ["name"],
    "financial_transactions": ["transaction_type", "amount", "transaction_date", "status"],
    "facilities": ["name", "facility_type"],
    "veterinarians": ["name", "phone"],
    "bi_products": ["name", "price", "unit"],
    "news": ["title", "content"],
    "farm_settings": ["farm_name"],
}

ANIMAL_TYPES = tuple(GESTATION_DAYS)

CHOICES = {
    ("animals", "animal_type"): ANIMAL_TYPES,
    ("animals", "status"): ("available", "breeding", "sold", "reserved"),
    ("animals", "gender"): ("male", "female"),
    ("breeding_records", "animal_type"): ANIMAL_TYPES,
    ("breeding_records", "status"): ("planned", "bred", "born", "weaned"),
    ("health_records", "record_type"): (
        "vaccination", "checkup", "treatment", "surgery",
        "injury", "illness", "deworming", "dental",
    ),
    ("vaccinations", "administration_route"): ("injection", "oral", "nasal", "topical"),
    ("inventory_items", "category"): ("feed", "medical", "equipment", "bedding", "other"),
    ("financial_transactions", "transaction_type"): ("sale", "purchase", "income", "expense"),
    ("financial_transactions", "status"): ("pending", "completed", "cancelled", "refunded"),
    ("bi_products", "product_type"): ("manure", "urine", "bedding", "other"),
    ("bi_products", "availability"): ("in-stock", "seasonal", "pre-order"),
}

NON_NEGATIVE = {"quantity", "low_stock_threshold", "amount", "cost", "price", "weight", "capacity"}


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def coerce_value(collection: str, field: str, value: Any) -> Any:
    """Convert one submitted value to the column's Python type."""
    column = get_table(collection).c[field]
    kind = column.type.__class__.__name__

    if _is_blank(value):
        return None

    if kind in ("Float", "Integer"):
        if isinstance(value, bool):
            raise ValueError(f"{field} must be a number")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"{field} must be a number")
        if not math.isfinite(number):
            raise ValueError(f"{field} must be a number")
        if kind == "Integer":
            if not number.is_integer():
                raise ValueError(f"{field} must be a whole number")
            number = int(number)
        if field in NON_NEGATIVE and number < 0:
            raise ValueError(f"{field} cannot be negative")
        return number

    if kind == "Date":
        parsed = as_date(value if isinstance(value, (date, datetime)) else str(value))
        if parsed is None:
            raise ValueError(f"{field} must be a date (YYYY-MM-DD)")
        return parsed

    if kind == "DateTime":
        if isinstance(value, datetime):
            return value
        try:
            return datetime.fromisoformat(str(value).strip())
        except ValueError:
            raise ValueError(f"{field} must be a timestamp")

    if kind == "Boolean":
        if isinstance(value, bool):
            return value
        if str(value).strip().lower() in ("1", "true", "yes", "on"):
            return True
        if str(value).strip().lower() in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"{field} must be true or false")

    if kind == "JSON":
        return value

    value = str(value).strip()
    choices = CHOICES.get((collection, field))
    if choices and value and value not in choices:
        raise ValueError(f"{field} must be one of: {', '.join(choices)}")
    return value


def validate_row(collection: str, data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Return a cleaned copy of *data* ready for the row store.

    Unknown keys and ``id``/``created_at`` are dropped. With *partial* (an
    update patch) only the submitted required fields must be non-blank.
    """
    table = get_table(collection)
    if not isinstance(data, dict):
        raise ValidationError(["Request body must be a JSON object"])

    errors: List[str] = []
    clean: Dict[str, Any] = {}

    for field, value in data.items():
        if field in ("id", "created_at") or field not in table.c:
            continue
        try:
            clean[field] = coerce_value(collection, field, value)
        except ValueError as e:
            errors.append(str(e))

    for field in REQUIRED_FIELDS.get(collection, []):
        if partial and field not in data:
            continue
        if _is_blank(clean.get(field)) and not any(e.startswith(f"{field} ") for e in errors):
            errors.append(f"{field} is required")

    if errors:
        raise ValidationError(errors)
    return clean


def coerce_filters(collection: str, params: Dict[str, Any]) -> Dict[str, Any]:
    """Convert query-string filters to column types; unknown columns are an error."""
    table = get_table(collection)
    filters = {}
    errors = []
    for field, value in params.items():
        if field not in table.c:
            errors.append(f"Unknown filter '{field}'")
            continue
        try:
            filters[field] = coerce_value(collection, field, value)
        except ValueError as e:
            errors.append(str(e))
    if errors:
        raise ValidationError(errors)
    return filters
