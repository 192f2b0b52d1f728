"""JSON-file key-value store for the ingredient and product catalog."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Tuple

from calc import normalize_unit, price_per_unit, recompute_costs

logger = logging.getLogger(__name__)

INGREDIENTS_KEY = "cost-tracking:ingredients:v1"
PRODUCTS_KEY = "cost-tracking:products:v1"
ACTIVE_TAB_KEY = "cost-tracking:active-tab"


class JsonStore:
    """One JSON file per key inside ``data_dir``."""

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{re.sub(r'[^A-Za-z0-9_.-]', '.', key)}.json"

    def load(self, key: str, default):
        """Return the stored value, writing ``default`` back when missing."""
        path = self.path_for(key)
        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except ValueError as e:  # JSONDecodeError, UnicodeDecodeError
                logger.warning("Unreadable store file %s (%s); using default", path, e)
                return default
            logger.debug("Loaded %s from %s", key, path)
            return data
        self.save(key, default)
        return default

    def save(self, key: str, data) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)


def _normalize_ingredient(d: Dict[str, Any]) -> Dict[str, Any]:
    ing = dict(d)
    ing["unit"] = normalize_unit(ing.get("unit", ""))
    size = float(ing.get("package_size") or 0.0)
    if size > 0:
        ing["price_per_unit"] = price_per_unit(float(ing.get("purchase_price") or 0.0), size)
    else:
        logger.warning("Ingredient %s has no package size; priced at 0", ing.get("id"))
        ing["price_per_unit"] = 0.0
    return ing


def load_catalog(store: JsonStore) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Read ingredients and products, re-deriving prices and costs."""
    ingredients = [_normalize_ingredient(d) for d in store.load(INGREDIENTS_KEY, [])]
    products = recompute_costs(store.load(PRODUCTS_KEY, []), ingredients)
    return ingredients, products


def save_ingredients(store: JsonStore, ingredients: List[Dict[str, Any]]) -> None:
    store.save(INGREDIENTS_KEY, ingredients)


def save_products(store: JsonStore, products: List[Dict[str, Any]]) -> None:
    store.save(PRODUCTS_KEY, products)
