import logging
import secrets

import bcrypt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from storefront import config

logger = logging.getLogger(__name__)

basic_auth = HTTPBasic(auto_error=False)

def generate_hash(password: str) -> str:
    """Hash bcrypt (salt auto) à placer dans ADMIN_PASSWORD_HASH."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

def check_admin_credentials(username: str, password: str) -> bool:
    """
    Identifiant admin unique partagé:
    - username comparé en temps constant à ADMIN_USER
    - password vérifié contre le hash bcrypt ADMIN_PASSWORD_HASH
    """
    if not config.ADMIN_PASSWORD_HASH:
        return False
    user_ok = secrets.compare_digest(username.encode("utf-8"), config.ADMIN_USER.encode("utf-8"))
    try:
        password_ok = bcrypt.checkpw(password.encode("utf-8"), config.ADMIN_PASSWORD_HASH.encode("utf-8"))
    except ValueError:
        logger.error("security.admin_hash_invalid")
        return False
    return user_ok and password_ok

def require_admin(credentials: HTTPBasicCredentials | None = Depends(basic_auth)) -> str:
    if credentials is None or not check_admin_credentials(credentials.username, credentials.password):
        logger.warning("security.admin_auth_failed user=%s", credentials.username if credentials else None)
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": 'Basic realm="Admin"'},
        )
    return credentials.username
