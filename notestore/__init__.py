"""notestore: boutique de fiches de révision (catalogue, panier, paiement Stripe, livraison des documents)."""

__version__ = "1.0.0"
