import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
from catalog import (
    IngredientInUseError,
    NotFoundError,
    ValidationError,
    add_ingredient,
    add_product,
    change_line_ingredient,
    delete_ingredient,
    delete_product,
    ingredient_name,
    is_ingredient_used,
    new_id,
    new_line,
    update_ingredient,
    update_product,
)


@pytest.fixture
def catalog():
    ingredients, products = [], []
    ingredients, products = add_ingredient(ingredients, products, {
        "name": "Flour", "purchase_price": 12000, "package_size": 1, "unit": "kg"})
    ingredients, products = add_ingredient(ingredients, products, {
        "name": "Egg", "purchase_price": 24000, "package_size": 10, "unit": "pcs"})
    ingredients, products = add_ingredient(ingredients, products, {
        "name": "Cocoa", "purchase_price": 30000, "package_size": 250, "unit": "gram"})
    flour, egg, cocoa = ingredients
    products = add_product(products, ingredients, {"name": "Bread", "ingredients": [
        {"ingredient_id": flour["id"], "quantity": 500, "unit": "gram"},
        {"ingredient_id": egg["id"], "quantity": 1, "unit": "piece"},
    ]})
    products = add_product(products, ingredients, {"name": "Cocoa drink", "ingredients": [
        {"ingredient_id": cocoa["id"], "quantity": 2, "unit": "tablespoon"},
    ]})
    return ingredients, products


def test_add_ingredient_derives_price_per_unit(catalog):
    ingredients, _ = catalog
    flour, egg, _ = ingredients
    assert flour["price_per_unit"] == pytest.approx(12000)
    assert egg["unit"] == "piece"
    assert egg["price_per_unit"] == pytest.approx(2400)
    assert len({i["id"] for i in ingredients}) == 3


def test_add_product_computes_cost(catalog):
    _, products = catalog
    bread, drink = products
    assert bread["total_cost"] == pytest.approx(6000 + 2400)
    assert drink["total_cost"] == pytest.approx(30 * 120)


@pytest.mark.parametrize("data, message", [
    ({"name": " ", "purchase_price": 1, "package_size": 1, "unit": "kg"}, "name"),
    ({"name": "Salt", "purchase_price": "", "package_size": 1, "unit": "kg"}, "required"),
    ({"name": "Salt", "purchase_price": -1, "package_size": 1, "unit": "kg"}, "negative"),
    ({"name": "Salt", "purchase_price": 1, "package_size": 0, "unit": "kg"}, "greater than 0"),
    ({"name": "Salt", "purchase_price": 1, "package_size": None, "unit": "kg"}, "required"),
    ({"name": "Salt", "purchase_price": "abc", "package_size": 1, "unit": "kg"}, "number"),
])
def test_add_ingredient_validation(data, message):
    with pytest.raises(ValidationError, match=message):
        add_ingredient([], [], data)


def test_delete_used_ingredient_rejected(catalog):
    ingredients, products = catalog
    flour = ingredients[0]
    assert is_ingredient_used(products, flour["id"])
    with pytest.raises(IngredientInUseError):
        delete_ingredient(ingredients, products, flour["id"])


def test_delete_unused_ingredient(catalog):
    ingredients, products = catalog
    products = delete_product(products, products[1]["id"])
    remaining = delete_ingredient(ingredients, products, ingredients[2]["id"])
    assert [i["name"] for i in remaining] == ["Flour", "Egg"]
    with pytest.raises(NotFoundError):
        delete_ingredient(remaining, products, "nope")


def test_price_change_updates_only_referencing_products(catalog):
    ingredients, products = catalog
    flour = ingredients[0]
    bread, drink = products

    ingredients, updated = update_ingredient(ingredients, products, flour["id"], {
        "name": "Flour", "purchase_price": 20000, "package_size": 1, "unit": "kg"})

    assert ingredients[0]["price_per_unit"] == pytest.approx(20000)
    assert updated[0]["total_cost"] == pytest.approx(10000 + 2400)
    assert updated[1] is drink
    assert bread["total_cost"] == pytest.approx(8400)


def test_update_missing_ingredient(catalog):
    ingredients, products = catalog
    with pytest.raises(NotFoundError):
        update_ingredient(ingredients, products, "nope", {})


@pytest.mark.parametrize("data, message", [
    ({"name": "", "ingredients": [{"ingredient_id": "x", "quantity": 1, "unit": "kg"}]}, "name"),
    ({"name": "Cake", "ingredients": []}, "at least one"),
    ({"name": "Cake", "ingredients": [{"ingredient_id": "x", "quantity": 0, "unit": "kg"}]}, "greater than 0"),
])
def test_add_product_validation(catalog, data, message):
    ingredients, products = catalog
    with pytest.raises(ValidationError, match=message):
        add_product(products, ingredients, data)


def test_update_product_recomputes_cost(catalog):
    ingredients, products = catalog
    egg = ingredients[1]
    bread = products[0]
    products = update_product(products, ingredients, bread["id"], {"name": "Omelette", "ingredients": [
        {"ingredient_id": egg["id"], "quantity": 3, "unit": "piece"}]})
    assert products[0]["id"] == bread["id"]
    assert products[0]["name"] == "Omelette"
    assert products[0]["total_cost"] == pytest.approx(7200)


def test_delete_product(catalog):
    _, products = catalog
    remaining = delete_product(products, products[0]["id"])
    assert [p["name"] for p in remaining] == ["Cocoa drink"]
    with pytest.raises(NotFoundError):
        delete_product(remaining, products[0]["id"])


def test_new_line_defaults(catalog):
    ingredients, _ = catalog
    line = new_line(ingredients)
    assert line == {"ingredient_id": ingredients[0]["id"], "quantity": 0.0, "unit": "kg"}
    with pytest.raises(ValidationError):
        new_line([])


def test_change_line_ingredient_resets_unit(catalog):
    ingredients, _ = catalog
    line = {"ingredient_id": ingredients[0]["id"], "quantity": 2.0, "unit": "kg"}
    changed = change_line_ingredient(line, ingredients[1]["id"], ingredients)
    assert changed == {"ingredient_id": ingredients[1]["id"], "quantity": 2.0, "unit": "piece"}
    assert change_line_ingredient(line, "gone", ingredients)["unit"] == "gram"


def test_ingredient_name_unknown(catalog):
    ingredients, _ = catalog
    assert ingredient_name(ingredients, ingredients[2]["id"]) == "Cocoa"
    assert ingredient_name(ingredients, "gone") == "Unknown"


def test_new_id_avoids_collisions(monkeypatch):
    monkeypatch.setattr("catalog.time.time", lambda: 1.0)
    assert new_id([]) == "1000"
    assert new_id([{"id": "1000"}, {"id": "1001"}]) == "1002"
