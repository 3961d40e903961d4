# storefront.config
from pathlib import Path
import os
from typing import List
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe, Resend)
- Expose les paramètres de prix (seuil de livraison gratuite, frais express) en centimes
- require_settings() est appelé au démarrage: une configuration incomplète est fatale
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: str = "") -> int | None:
    """Lit un entier (centimes, compteurs). Retourne None si absent ou invalide."""
    raw = _clean_env(os.getenv(name) or default)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None

# Supabase: URL et clé service (écritures serveur)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Stripe: clé secrète, secret de signature des webhooks
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_CURRENCY = _clean_env(os.getenv("STRIPE_CURRENCY") or "gbp").lower()
STRIPE_WEBHOOK_TOLERANCE_SECONDS = _int_env("STRIPE_WEBHOOK_TOLERANCE_SECONDS", "300") or 300

# URL publique (liens de redirection: thank-you, annulation checkout)
BASE_URL = _clean_env(os.getenv("BASE_URL") or os.getenv("NEXT_PUBLIC_BASE_URL") or "").rstrip("/")

# Livraison (centimes). STANDARD_SHIPPING_CENTS vaut 0 dans la configuration actuelle.
FREE_SHIPPING_THRESHOLD_CENTS = _int_env("FREE_SHIPPING_THRESHOLD_CENTS")
NEXT_DAY_SHIPPING_CENTS = _int_env("NEXT_DAY_SHIPPING_CENTS")
STANDARD_SHIPPING_CENTS = _int_env("STANDARD_SHIPPING_CENTS", "0") or 0

# Numéros de commande lisibles (ORD-XXXXXX)
ORDER_NUMBER_PREFIX = _clean_env(os.getenv("ORDER_NUMBER_PREFIX") or "ORD-")
ORDER_NUMBER_LENGTH = _int_env("ORDER_NUMBER_LENGTH", "6") or 6
ORDER_NUMBER_MAX_ATTEMPTS = _int_env("ORDER_NUMBER_MAX_ATTEMPTS", "5") or 5

# Identifiant admin unique (hash bcrypt, jamais de mot de passe en clair)
ADMIN_USER = _clean_env(os.getenv("ADMIN_USER") or "admin")
ADMIN_PASSWORD_HASH = _clean_env(os.getenv("ADMIN_PASSWORD_HASH") or "")

# E-mails transactionnels (Resend). Sans clé, l'envoi est désactivé (log uniquement).
RESEND_API_KEY = _clean_env(os.getenv("RESEND_API_KEY") or "")
EMAIL_FROM = _clean_env(os.getenv("EMAIL_FROM") or "Saint Archive <orders@saintarchive.co.uk>")

# HSTS / CORS / hôtes
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

REQUIRED_SETTINGS = (
    "SUPABASE_URL",
    "SUPABASE_SERVICE_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "BASE_URL",
    "FREE_SHIPPING_THRESHOLD_CENTS",
    "NEXT_DAY_SHIPPING_CENTS",
)

def missing_settings() -> List[str]:
    """
    Retourne les noms des réglages obligatoires absents ou invalides.
    - Les montants doivent être des entiers >= 0 (centimes).
    """
    values = globals()
    missing: List[str] = []
    for name in REQUIRED_SETTINGS:
        value = values.get(name)
        if value is None or value == "":
            missing.append(name)
        elif isinstance(value, int) and value < 0:
            missing.append(name)
    return missing

def require_settings() -> None:
    """Échec fatal au démarrage si la configuration est incomplète."""
    missing = missing_settings()
    if missing:
        raise RuntimeError("Configuration manquante ou invalide: " + ", ".join(missing))
