"""Boutique: commandes directes, tickets de tirage et réconciliation des paiements Stripe."""
