"""
Gestionnaires d'exceptions.
- AppError (taxonomie métier) -> {"error": message} avec le code HTTP de l'erreur.
- HTTPException (framework: 401 admin, 429, 404 de route) -> {"detail": ...}.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from storefront.utils.errors import AppError, AuthenticityError, TransientError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if isinstance(exc, TransientError):
            logger.error("http.transient_error path=%s code=%s", request.url.path, exc.code)
        elif isinstance(exc, AuthenticityError):
            logger.warning("http.authenticity_error path=%s", request.url.path)
        else:
            logger.info("http.app_error path=%s status=%s code=%s", request.url.path, exc.status_code, exc.code)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)
