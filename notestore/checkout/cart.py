"""
Logique panier pure (pas de Stripe, pas de DB).
Les prix viennent toujours du catalogue: aucun prix envoyé par le client n’est lu.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Mapping
from notestore.catalog.models import Product
from notestore.errors import ValidationFailure
from notestore.payments.metadata import make_metadata as _make_metadata

# module notestore.checkout.cart
def aggregate_quantities(items: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    """
    Agrège un panier brut [{id, quantity}, ...] en {note_id: total_quantity}.
    - Ignore les lignes invalides (id vide, quantity <= 0).
    - ValidationFailure si aucune ligne valide n’est présente.
    """
    quantities: Dict[str, int] = {}
    for it in items or []:
        note_id = str(it.get("id") or "").strip()
        try:
            qty = int(it.get("quantity") or 0)
        except (TypeError, ValueError):
            raise ValidationFailure(f"Quantité invalide pour {note_id or 'un article'}")
        if not note_id or qty <= 0:
            continue
        quantities[note_id] = quantities.get(note_id, 0) + qty
    if not quantities:
        raise ValidationFailure("Panier vide")
    return quantities

def to_minor_units(amount: Decimal) -> int:
    """19.99 -> 1999 (arrondi au centime, demi vers le haut)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def resolve_products(products: Mapping[str, Product], quantities: Mapping[str, int]) -> List[Product]:
    """
    Vérifie que chaque note du panier existe au catalogue avec un prix positif.
    - ValidationFailure sinon (jamais d’article silencieusement retiré du paiement)
    """
    resolved: List[Product] = []
    for note_id in quantities:
        product = products.get(note_id)
        if product is None:
            raise ValidationFailure(f"Note inconnue: {note_id}")
        if product.price <= 0:
            raise ValidationFailure(f"Prix invalide pour la note {note_id}")
        resolved.append(product)
    return resolved

def compute_total(products: Mapping[str, Product], quantities: Mapping[str, int]) -> Decimal:
    total = Decimal("0.00")
    for product in resolve_products(products, quantities):
        total += product.price * quantities[product.id]
    return total

def to_line_items(products: Mapping[str, Product], quantities: Mapping[str, int], currency: str) -> List[Dict[str, Any]]:
    """
    Construit les line_items Stripe à partir des notes et quantités.
    - Si 'stripe_price_id' est présent, utilise {"price": "<price_id>"}.
    - Sinon, construit 'price_data' avec unit_amount (en centimes) et product_data.name.
    """
    line_items: List[Dict[str, Any]] = []
    for product in resolve_products(products, quantities):
        qty = quantities[product.id]
        if product.stripe_price_id:
            line_items.append({"price": product.stripe_price_id, "quantity": qty})
            continue
        product_data: Dict[str, Any] = {"name": product.title or "Note"}
        if product.description:
            product_data["description"] = product.description[:500]
        line_items.append({
            "quantity": qty,
            "price_data": {
                "currency": currency,
                "unit_amount": to_minor_units(product.price),
                "product_data": product_data,
            },
        })
    return line_items

def make_metadata(user_id: str, quantities: Mapping[str, int]) -> Dict[str, str]:
    return _make_metadata(user_id, list(quantities.keys()))
