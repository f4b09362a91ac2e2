"""
Gestionnaires d’exceptions utilisés par la factory.
- NoteStoreError (erreurs métier): code HTTP porté par l’exception, corps {"detail": message lisible, "error": code machine stable (error_code)}.
- HTTPException: corps JSON standard FastAPI.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from notestore.errors import NoteStoreError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NoteStoreError)
    async def notestore_error(request: Request, exc: NoteStoreError):
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "error": exc.error_code})

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
