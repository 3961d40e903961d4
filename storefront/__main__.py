"""
Lancement local de la boutique: python -m storefront

Variables lues:
- HOST / PORT: adresse d'écoute (0.0.0.0:8000 par défaut)
- UVICORN_RELOAD=1: rechargement automatique (dev uniquement)
- LOG_LEVEL: niveau de logs transmis à uvicorn et à l'application
- FORWARDED_ALLOW_IPS: proxys autorisés à fixer X-Forwarded-* (Stripe passe par le proxy en prod)
"""
import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "storefront.asgi:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        reload=os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes"),
        log_level=os.environ.get("LOG_LEVEL", "info").lower(),
        forwarded_allow_ips=os.environ.get("FORWARDED_ALLOW_IPS", "127.0.0.1"),
    )


if __name__ == "__main__":
    main()
