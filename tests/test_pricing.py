import logging

import pytest
from bson import ObjectId

from pricing import (
    StockItem,
    StockValidationError,
    calculate_cart_summary,
    compute_charges,
    deduct_stock,
    validate_stock_for_order,
)


def line(product_id, quantity):
    return {"id": str(ObjectId()), "product_id": product_id, "quantity": quantity}


def test_compute_charges_below_free_shipping_threshold():
    charges = compute_charges(30)
    assert charges["subtotal"] == 30
    assert charges["shipping_price"] == 7.5
    assert charges["tax_price"] == pytest.approx(2.4)
    assert charges["total_price"] == pytest.approx(39.9)


def test_compute_charges_free_shipping_at_threshold():
    charges = compute_charges(100)
    assert charges["shipping_price"] == 0
    assert charges["tax_price"] == 8
    assert charges["total_price"] == 108


def test_summary_uses_current_product_price(db, add_product):
    pid = add_product(price=10.0, stock=5)
    summary = calculate_cart_summary(db, [line(pid, 3)])

    assert summary.errors == []
    assert summary.subtotal == 30
    assert summary.item_count == 3
    assert summary.total_price == pytest.approx(39.9)
    detail = summary.items_details[0]
    assert detail.product_id == pid
    assert detail.total_item_price == 30
    assert detail.image_url == "/images/placeholder-product.jpg"


def test_summary_skips_missing_and_invalid_products(db, add_product):
    pid = add_product(price=60.0, stock=10)
    gone = str(ObjectId())
    summary = calculate_cart_summary(db, [line(pid, 2), line(gone, 1), line("not-an-id", 1)])

    assert len(summary.errors) == 2
    assert any(gone in e for e in summary.errors)
    assert summary.subtotal == 120
    assert summary.shipping_price == 0
    assert [d.product_id for d in summary.items_details] == [pid]


def test_summary_flags_stock_shortfall_but_still_prices(db, add_product):
    pid = add_product(name="Cat Tree", price=20.0, stock=1)
    summary = calculate_cart_summary(db, [line(pid, 3)])

    assert summary.subtotal == 60
    assert len(summary.errors) == 1
    assert 'Insufficient stock for "Cat Tree". Requested: 3, Available: 1' in summary.errors[0]


def test_validate_stock_passes_when_covered(db, add_product):
    pid = add_product(stock=4)
    assert validate_stock_for_order(db, [StockItem(product_id=pid, quantity=4)]) is True


def test_validate_stock_raises_on_shortfall(db, add_product):
    pid = add_product(name="Leash", stock=2)
    with pytest.raises(StockValidationError) as exc:
        validate_stock_for_order(db, [StockItem(product_id=pid, quantity=3)])
    assert str(exc.value) == 'Insufficient stock for "Leash". Only 2 available.'
    assert exc.value.missing is False


def test_validate_stock_raises_on_missing_product(db):
    pid = str(ObjectId())
    with pytest.raises(StockValidationError) as exc:
        validate_stock_for_order(db, [StockItem(product_id=pid, quantity=1)])
    assert exc.value.missing is True
    assert pid in str(exc.value)


def test_deduct_stock_decrements_each_product(db, add_product):
    a = add_product(name="A", stock=5)
    b = add_product(name="B", stock=2)
    modified = deduct_stock(db, [StockItem(product_id=a, quantity=2), StockItem(product_id=b, quantity=2)])

    assert modified == 2
    assert db.product.find_one({"_id": ObjectId(a)})["stock"] == 3
    assert db.product.find_one({"_id": ObjectId(b)})["stock"] == 0


def test_deduct_stock_never_goes_negative(db, add_product, caplog):
    a = add_product(name="A", stock=5)
    b = add_product(name="B", stock=1)
    with caplog.at_level(logging.WARNING, logger="pricing"):
        modified = deduct_stock(db, [StockItem(product_id=a, quantity=1), StockItem(product_id=b, quantity=2)])

    assert modified == 1
    assert db.product.find_one({"_id": ObjectId(b)})["stock"] == 1
    assert "Stock deduction mismatch" in caplog.text
