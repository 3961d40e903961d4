# module storefront.waitlist.repository
from typing import Any, Dict, Optional
import logging

from storefront.infra.supabase_client import get_service_supabase, execute
from storefront.utils.errors import DuplicateKeyError

logger = logging.getLogger(__name__)


def insert_waitlist_email(email: str) -> Optional[Dict[str, Any]]:
    """
    Inscrit un e-mail. Retourne None si l'e-mail est déjà inscrit
    (contrainte d'unicité 23505 = déjà sur la liste).
    """
    try:
        res = execute(get_service_supabase().table("waitlist").insert({"email": email}), "waitlist")
    except DuplicateKeyError:
        return None
    return (res.data or [{"email": email}])[0]
