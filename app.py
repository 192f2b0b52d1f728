# app.py
# =============================================================================
# Food Cost Tracker: ingredient master data + product production cost
# =============================================================================

import logging

import streamlit as st
import matplotlib.pyplot as plt  # product cost pie chart
from babel.numbers import format_currency, format_decimal

from calc import UNITS, cost_breakdown, unit_choices
from catalog import (
    CatalogError,
    add_ingredient,
    add_product,
    change_line_ingredient,
    delete_ingredient,
    delete_product,
    ingredient_name,
    new_line,
    update_ingredient,
    update_product,
)
from config import LOCALES, configure_logging, get_settings
from store import ACTIVE_TAB_KEY, JsonStore, load_catalog, save_ingredients, save_products

# -----------------------------------------------------------------------------
# CONFIG
# -----------------------------------------------------------------------------
st.set_page_config(page_title="Food Cost Tracker", layout="wide")

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger("app")
store = JsonStore(settings.data_dir)

# -----------------------------------------------------------------------------
# STATE
# -----------------------------------------------------------------------------
if "ingredients" not in st.session_state:
    st.session_state.ingredients, st.session_state.products = load_catalog(store)
    logger.info(
        "Loaded %d ingredient(s) and %d product(s) from %s",
        len(st.session_state.ingredients), len(st.session_state.products), settings.data_dir,
    )
if "product_buffer" not in st.session_state:
    st.session_state.product_buffer = {"id": None, "name": "", "ingredients": []}
# bumped to give a form fresh widget keys (cleared or restructured)
if "product_form_nonce" not in st.session_state:
    st.session_state.product_form_nonce = 0
if "ingredient_form_nonce" not in st.session_state:
    st.session_state.ingredient_form_nonce = 0
if "locale" not in st.session_state:
    st.session_state["locale"] = settings.locale

# -----------------------------------------------------------------------------
# HELPERS
# -----------------------------------------------------------------------------
def format_money(x):
    if x is None:
        return "—"
    return format_currency(x, settings.currency, locale=st.session_state["locale"])


def format_number(x, decimals: int = 2) -> str:
    pattern = f"#,##0.{ '#'*decimals }" if decimals > 0 else "#,##0"
    return format_decimal(x, format=pattern, locale=st.session_state["locale"])


def commit(ingredients=None, products=None):
    """Store the new catalog lists in session and on disk."""
    if ingredients is not None:
        st.session_state.ingredients = ingredients
        save_ingredients(store, ingredients)
    if products is not None:
        st.session_state.products = products
        save_products(store, products)


def load_product_buffer(buffer):
    st.session_state.product_buffer = buffer
    st.session_state.product_form_nonce += 1


def reset_product_buffer():
    load_product_buffer({"id": None, "name": "", "ingredients": []})


# -----------------------------------------------------------------------------
# UI: sidebar navigation
# -----------------------------------------------------------------------------
sections = {"ingredients": "Ingredients", "products": "Products"}
saved_tab = store.load(ACTIVE_TAB_KEY, "ingredients")
tab_keys = list(sections)
page = st.sidebar.selectbox(
    "Navigate", tab_keys,
    index=tab_keys.index(saved_tab) if saved_tab in tab_keys else 0,
    format_func=sections.get, key="nav",
)
if page != saved_tab:
    store.save(ACTIVE_TAB_KEY, page)

st.session_state["locale"] = st.sidebar.selectbox(
    "Locale", LOCALES,
    index=LOCALES.index(st.session_state["locale"]) if st.session_state["locale"] in LOCALES else 0,
    key="settings_locale",
)

st.title("Production Cost Manager")
st.caption("Track ingredient costs and compute product cost with ease.")

# -----------------------------------------------------------------------------
# INGREDIENTS
# -----------------------------------------------------------------------------
if page == "ingredients":
    st.header("Ingredients (package-based pricing)")
    st.caption("Enter package size + purchase price; the app computes price per unit automatically.")

    ingredients = st.session_state.ingredients
    if not ingredients:
        st.info("No ingredients yet. Add your first ingredient below!")

    for ing in ingredients:
        iid = ing["id"]
        with st.expander(ing["name"], expanded=False):
            st.write(
                f"Price: {format_money(ing['purchase_price'])} / "
                f"{format_number(ing['package_size'])} {ing['unit']}"
            )
            st.success(f"Price per {ing['unit']}: {format_money(ing['price_per_unit'])}")
            with st.form(f"ing_form_{iid}"):
                name = st.text_input("Ingredient name", value=ing["name"], key=f"ing_name_{iid}")
                price = st.number_input("Purchase price", min_value=0.0, value=float(ing["purchase_price"]),
                                        step=100.0, key=f"ing_price_{iid}")
                c1, c2 = st.columns([2, 1])
                size = c1.number_input("Package size", min_value=0.0, value=float(ing["package_size"]),
                                       step=1.0, key=f"ing_size_{iid}")
                choices = unit_choices(ing["unit"])
                unit = c2.selectbox("Unit", choices,
                                    index=choices.index(ing["unit"]) if ing["unit"] in choices else 0,
                                    key=f"ing_unit_{iid}")
                sure = st.checkbox("Yes, delete this ingredient", key=f"ing_sure_{iid}")
                b1, b2 = st.columns([1, 1])
                upd_btn = b1.form_submit_button("Update")
                del_btn = b2.form_submit_button("Delete 🗑️")
            if upd_btn:
                data = {"name": name, "purchase_price": price, "package_size": size, "unit": unit}
                try:
                    new_ings, new_prods = update_ingredient(ingredients, st.session_state.products, iid, data)
                except CatalogError as e:
                    st.error(str(e))
                else:
                    commit(new_ings, new_prods)
                    st.success("Ingredient updated")
                    st.rerun()
            if del_btn:
                if not sure:
                    st.warning("Tick the confirmation box to delete this ingredient.")
                else:
                    try:
                        new_ings = delete_ingredient(ingredients, st.session_state.products, iid)
                    except CatalogError as e:
                        st.error(str(e))
                    else:
                        commit(ingredients=new_ings)
                        st.warning("Ingredient deleted")
                        st.rerun()

    st.divider()
    st.subheader("Add ingredient ➕")
    n = st.session_state.ingredient_form_nonce
    with st.form(f"add_ingredient_form_{n}"):
        new_name = st.text_input("Ingredient name", placeholder="e.g. Wheat flour", key=f"ing_new_name_{n}")
        new_price = st.number_input("Purchase price", min_value=0.0, value=None, step=100.0,
                                    placeholder="15000", key=f"ing_new_price_{n}")
        c1, c2 = st.columns([2, 1])
        new_size = c1.number_input("Package size", min_value=0.0, value=None, step=1.0,
                                   placeholder="1000", key=f"ing_new_size_{n}")
        new_unit = c2.selectbox("Unit", UNITS, key=f"ing_new_unit_{n}")
        submitted = st.form_submit_button("Save")
    if submitted:
        data = {"name": new_name, "purchase_price": new_price, "package_size": new_size, "unit": new_unit}
        try:
            new_ings, new_prods = add_ingredient(ingredients, st.session_state.products, data)
        except CatalogError as e:
            st.error(str(e))
        else:
            commit(new_ings, new_prods)
            st.session_state.ingredient_form_nonce += 1
            st.success("Ingredient added")
            st.rerun()

# -----------------------------------------------------------------------------
# PRODUCTS
# -----------------------------------------------------------------------------
if page == "products":
    st.header("Products")
    ingredients = st.session_state.ingredients
    products = st.session_state.products
    pb = st.session_state.product_buffer

    tab_list, tab_form = st.tabs(["Product list", "Edit product" if pb["id"] else "New product"])

    with tab_list:
        if not products:
            st.info("No products yet. Add your first product!")
            st.caption("Make sure you have added ingredients in the master data first.")
        for p in products:
            pid = p["id"]
            with st.expander(f"{p['name']} — {format_money(p['total_cost'])}", expanded=False):
                st.metric("Total cost", format_money(p["total_cost"]))
                st.caption(f"{len(p['ingredients'])} ingredient(s) used")

                st.markdown("#### Ingredient detail 🧾")
                rows = cost_breakdown(p, ingredients)
                for lname, qty, unit, cost in rows:
                    st.write(f"- {lname}: {format_number(qty)} {unit} → {format_money(cost)}")
                known = {i["id"] for i in ingredients}
                missing = [line for line in p["ingredients"] if line["ingredient_id"] not in known]
                if missing:
                    st.warning(f"{len(missing)} line(s) reference a deleted ingredient → excluded from cost.")

                cost_labels = [r[0] for r in rows]
                cost_vals = [r[3] for r in rows]
                if sum(cost_vals) > 0:
                    fig, ax = plt.subplots()
                    ax.pie(cost_vals, labels=cost_labels, autopct='%1.1f%%', startangle=90)
                    ax.axis('equal')
                    st.pyplot(fig)
                    plt.close(fig)
                    st.caption("Pie chart of cost distribution per ingredient")

                c1, c2, c3 = st.columns([1, 1, 1])
                if c1.button("Edit ✏️", key=f"p_edit_{pid}"):
                    load_product_buffer({
                        "id": pid,
                        "name": p["name"],
                        "ingredients": [dict(line) for line in p["ingredients"]],
                    })
                    st.rerun()
                sure = c2.checkbox("Yes, delete", key=f"p_sure_{pid}")
                if c3.button("Delete 🗑️", key=f"p_del_{pid}"):
                    if not sure:
                        st.warning("Tick the confirmation box to delete this product.")
                    else:
                        commit(products=delete_product(products, pid))
                        if pb["id"] == pid:
                            reset_product_buffer()
                        st.warning("Product deleted")
                        st.rerun()

    with tab_form:
        st.subheader("Edit product" if pb["id"] else "Add new product")
        n = st.session_state.product_form_nonce
        pb["name"] = st.text_input("Product name", value=pb["name"], placeholder="e.g. Brownies",
                                   key=f"pb_name_{n}")

        st.markdown("#### Ingredients used 🧾")
        if not pb["ingredients"]:
            st.info("No ingredients added yet.")
        ids = [i["id"] for i in ingredients]
        remove_idx = None
        for idx, line in enumerate(pb["ingredients"]):
            # a deleted ingredient stays selectable so the line is not silently repointed
            options = ids if line["ingredient_id"] in ids else ids + [line["ingredient_id"]]
            c1, c2, c3, c4 = st.columns([3, 2, 2, 1])
            chosen = c1.selectbox(f"Ingredient #{idx + 1}", options,
                                  index=options.index(line["ingredient_id"]),
                                  format_func=lambda i: ingredient_name(ingredients, i),
                                  key=f"pl_{n}_{idx}_ing")
            if chosen != line["ingredient_id"]:
                line = change_line_ingredient(line, chosen, ingredients)
            line["quantity"] = float(c2.number_input("Quantity", min_value=0.0, value=float(line["quantity"]),
                                                     step=1.0, key=f"pl_{n}_{idx}_qty"))
            choices = unit_choices(line["unit"])
            # keyed by ingredient so switching ingredient resets the unit
            line["unit"] = c3.selectbox("Unit", choices,
                                        index=choices.index(line["unit"]) if line["unit"] in choices else 0,
                                        key=f"pl_{n}_{idx}_unit_{line['ingredient_id']}")
            pb["ingredients"][idx] = line
            if c4.button("🗑️", key=f"pl_{n}_{idx}_del"):
                remove_idx = idx
            if line["quantity"] > 0 and line["ingredient_id"] in ids:
                cost = sum(r[3] for r in cost_breakdown({"ingredients": [line]}, ingredients))
                st.caption(f"Estimated cost: {format_money(cost)}")
        if remove_idx is not None:
            pb["ingredients"].pop(remove_idx)
            load_product_buffer(pb)
            st.rerun()

        st.markdown("##### Add ingredient line ➕")
        if not ingredients:
            st.warning("Add ingredients in the master data first!")
        else:
            picked = st.selectbox("Ingredient", ids, format_func=lambda i: ingredient_name(ingredients, i),
                                  key="pl_ingredient")
            draft = change_line_ingredient(new_line(ingredients), picked, ingredients)
            with st.form("pl_add_form"):
                qty = st.number_input("Quantity", min_value=0.0, value=0.0, step=1.0, key="pl_qty")
                unit = st.selectbox("Unit", UNITS,
                                    index=UNITS.index(draft["unit"]) if draft["unit"] in UNITS else 0,
                                    key=f"pl_unit_{picked}")
                add_btn = st.form_submit_button("Add line")
            if add_btn:
                if qty <= 0:
                    st.error("Ingredient quantities must be greater than 0.")
                else:
                    pb["ingredients"].append({**draft, "quantity": float(qty), "unit": unit})
                    st.rerun()

        if pb["ingredients"]:
            est = sum(r[3] for r in cost_breakdown(pb, ingredients))
            st.success(f"Estimated total cost: {format_money(est)}")

        st.divider()
        s1, s2 = st.columns([1, 1])
        save_btn = s1.button("✅ Update product" if pb["id"] else "✅ Save product", key="pb_save")
        cancel_btn = s2.button("Cancel", key="pb_cancel")
        if save_btn:
            data = {"name": pb["name"], "ingredients": pb["ingredients"]}
            try:
                if pb["id"]:
                    new_prods = update_product(products, ingredients, pb["id"], data)
                else:
                    new_prods = add_product(products, ingredients, data)
            except CatalogError as e:
                st.error(str(e))
            else:
                commit(products=new_prods)
                reset_product_buffer()
                st.success("Product saved")
                st.rerun()
        if cancel_btn:
            reset_product_buffer()
            st.rerun()

# -----------------------------------------------------------------------------
# FOOTER: stats
# -----------------------------------------------------------------------------
if st.session_state.ingredients or st.session_state.products:
    st.divider()
    m1, m2 = st.columns(2)
    m1.metric("Registered ingredients", len(st.session_state.ingredients))
    m2.metric("Products", len(st.session_state.products))
