# orders/services/quick_order.py

"""
QUICK ORDER LINE BUILDER

A quick order buys N units of one product from the product page, each unit
with its own variant choices. Every unit becomes its own quantity=1 cart line
whose unit price has the chosen option modifiers folded in; the result then
goes through the same pricing + commit path as a full checkout.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from orders.services.money import ZERO, to_decimal
from orders.services.pricing import CartLine, VariantSelection


def _find_option(variant: Mapping, option_id):
    if option_id is None or option_id == "":
        return None
    for option in variant.get("options") or []:
        if str(option.get("id")) == str(option_id):
            return option
    return None


def build_quick_order_lines(
    *,
    product_id,
    product_name,
    base_price,
    quantity: int,
    variants: Sequence[Mapping] = (),
    selections: Sequence[Mapping] = (),
) -> list[CartLine]:
    """
    variants:   [{id, name, options: [{id, label, price_modifier}]}]
    selections: one {variant_id: option_id} mapping per unit (missing -> no choice)
    """
    quantity = int(quantity)
    if quantity < 1:
        raise ValueError("quantity must be >= 1")

    base = to_decimal(base_price)
    lines = []

    for unit in range(quantity):
        chosen = selections[unit] if unit < len(selections) else None
        chosen = chosen or {}

        price = base
        snapshot = []
        for variant in variants or []:
            option = _find_option(variant, chosen.get(str(variant.get("id"))))
            modifier = to_decimal(option.get("price_modifier")) if option else ZERO
            price += modifier
            snapshot.append(
                VariantSelection(
                    variant_id=str(variant.get("id") or ""),
                    variant_name=variant.get("name") or "",
                    option_id=str(option.get("id")) if option else "",
                    option_label=(option.get("label") or "") if option else "",
                    price_modifier=modifier,
                )
            )

        lines.append(
            CartLine(
                product_id=str(product_id),
                product_name=product_name,
                unit_price=price if price > ZERO else ZERO,
                quantity=1,
                variants=snapshot,
            )
        )

    return lines
