"""
Unit tests for form validation and filter coercion.
"""

from datetime import date

import pytest

from farm_portal.validation import ValidationError, coerce_filters, coerce_value, validate_row


def test_valid_inventory_item():
    clean = validate_row("inventory_items", {
        "name": " Hay ", "category": "feed", "unit": "bale",
        "quantity": "12", "low_stock_threshold": 5, "bogus": "dropped",
    })
    assert clean == {"name": "Hay", "category": "feed", "unit": "bale",
                     "quantity": 12.0, "low_stock_threshold": 5.0}


def test_missing_required_fields_all_reported():
    with pytest.raises(ValidationError) as e:
        validate_row("animals", {"name": "", "animal_type": "rabbit"})
    assert "name is required" in e.value.errors
    assert "gender is required" in e.value.errors
    assert "status is required" in e.value.errors


def test_partial_update_only_checks_submitted_fields():
    assert validate_row("animals", {"status": "sold"}, partial=True) == {"status": "sold"}
    with pytest.raises(ValidationError, match="name is required"):
        validate_row("animals", {"name": "  "}, partial=True)


def test_id_and_created_at_are_dropped():
    clean = validate_row("suppliers", {"id": "x", "created_at": "2024-01-01", "name": "Feed Co"})
    assert clean == {"name": "Feed Co"}


@pytest.mark.parametrize("value", ["abc", "nan", "inf", True])
def test_non_numeric_rejected(value):
    with pytest.raises(ValueError, match="amount must be a number"):
        coerce_value("financial_transactions", "amount", value)


def test_negative_quantity_rejected():
    with pytest.raises(ValueError, match="quantity cannot be negative"):
        coerce_value("inventory_items", "quantity", -1)


def test_integer_must_be_whole():
    assert coerce_value("breeding_records", "litter_size", "6") == 6
    with pytest.raises(ValueError, match="whole number"):
        coerce_value("breeding_records", "litter_size", 6.5)


def test_date_coercion():
    assert coerce_value("breeding_records", "breeding_date", "2024-01-01") == date(2024, 1, 1)
    assert coerce_value("breeding_records", "breeding_date", "2024-01-01T09:30:00") == date(2024, 1, 1)
    with pytest.raises(ValueError, match="must be a date"):
        coerce_value("breeding_records", "breeding_date", "01/02/2024")


def test_date_with_trailing_text_rejected():
    with pytest.raises(ValidationError, match="breeding_date must be a date"):
        validate_row("breeding_records", {"sire_id": "s", "dam_id": "d", "animal_type": "rabbit",
                                          "breeding_date": "2024-01-01XYZ"})


def test_blank_becomes_none():
    assert coerce_value("breeding_records", "expected_birth", "") is None


def test_boolean_coercion():
    assert coerce_value("veterinarians", "emergency_contact", "yes") is True
    assert coerce_value("veterinarians", "emergency_contact", "0") is False
    with pytest.raises(ValueError, match="true or false"):
        coerce_value("veterinarians", "emergency_contact", "maybe")


def test_choice_fields():
    assert coerce_value("animals", "animal_type", "guinea-pig") == "guinea-pig"
    with pytest.raises(ValueError, match="animal_type must be one of"):
        coerce_value("animals", "animal_type", "horse")


def test_body_must_be_object():
    with pytest.raises(ValidationError, match="JSON object"):
        validate_row("animals", None)


def test_coerce_filters():
    assert coerce_filters("animals", {"status": "available"}) == {"status": "available"}
    with pytest.raises(ValidationError, match="Unknown filter 'colour'"):
        coerce_filters("animals", {"colour": "brown"})
