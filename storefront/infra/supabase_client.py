import logging
from typing import Any, Optional
from postgrest.exceptions import APIError
from supabase import create_client, Client
from storefront.config import SUPABASE_URL, SUPABASE_SERVICE_KEY
from storefront.utils.errors import DuplicateKeyError, InvalidData, TransientError

logger = logging.getLogger(__name__)

_service_supabase: Optional[Client] = None

UNIQUE_VIOLATION = "23505"
# Classe SQLSTATE 22 (data exception): erreur de l'appelant, pas une panne
DATA_EXCEPTION_CLASS = "22"

def get_service_supabase() -> Client:
    global _service_supabase
    if not SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant pour get_service_supabase()")
    if _service_supabase is None:
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
    return _service_supabase

def _api_error_code(e: APIError) -> str:
    code = getattr(e, "code", None)
    if not code and e.args and isinstance(e.args[0], dict):
        code = e.args[0].get("code")
    return str(code or "")

def execute(query: Any, table: str) -> Any:
    """
    Exécute une requête PostgREST et normalise les erreurs:
    - 23505 (unique_violation) -> DuplicateKeyError (collision / doublon idempotent)
    - 22xxx (data exception: 22P02 uuid invalide, 22003 hors plage) -> InvalidData (400, non rejouable)
    - toute autre erreur -> TransientError (rejouable, 500 côté HTTP)
    """
    try:
        return query.execute()
    except APIError as e:
        code = _api_error_code(e)
        if code == UNIQUE_VIOLATION:
            raise DuplicateKeyError(table, getattr(e, "message", "") or str(e))
        if code.startswith(DATA_EXCEPTION_CLASS):
            logger.warning("supabase.invalid_data table=%s code=%s", table, code)
            raise InvalidData()
        logger.exception("supabase.error table=%s", table)
        raise TransientError()
    except Exception:
        logger.exception("supabase.unavailable table=%s", table)
        raise TransientError()
