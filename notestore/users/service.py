"""Couche service du domaine Utilisateurs: tableau de bord (notes achetées, demandes vendeur)."""
from typing import Any, Dict, List
from notestore.catalog import repository as catalog_repo
from notestore.purchases import repository as purchases_repo
from notestore.sellers import repository as sellers_repo

def get_purchased_notes(user_id: str) -> List[Dict[str, Any]]:
    """Notes achetées, de la plus récente à la plus ancienne (sans référence de document)."""
    purchases = purchases_repo.list_purchases(user_id)
    products = catalog_repo.get_products_map(p.get("note_id") for p in purchases)
    notes: List[Dict[str, Any]] = []
    for purchase in purchases:
        product = products.get(str(purchase.get("note_id")))
        if product is None:
            continue
        item = product.public_dict()
        item["purchased_at"] = purchase.get("created_at")
        notes.append(item)
    return notes

def get_user_dashboard(user_id: str) -> Dict[str, Any]:
    return {
        "notes": get_purchased_notes(user_id),
        "seller_requests": sellers_repo.list_by_user(user_id),
    }
