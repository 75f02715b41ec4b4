import logging

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from barometre.core.config import settings
from barometre.core.errors import InvalidParameter, UnknownLookupKey, UpstreamStoreFailure
from barometre.models.dto import Health
from barometre.routers import (
    iggn, ma_gendarmerie, perceval, pre_plainte_en_ligne, recrutement,
    reseaux_sociaux, service_public_plus, site_web,
)

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
log = logging.getLogger(__name__)

TOPIC_ROUTERS = (
    ma_gendarmerie.router,
    perceval.router,
    pre_plainte_en_ligne.router,
    site_web.router,
    recrutement.router,
    reseaux_sociaux.router,
    service_public_plus.router,
    iggn.router,
)

def create_app() -> FastAPI:
    app = FastAPI(
        title="Le Baromètre Numérique - API",
        version="0.1.0",
        description="Une simple API pour accéder aux données d'utilisation "
                    "des services numériques de la Gendarmerie.",
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
        redoc_url=None,
    )

    if settings.APP_OFFLINE:
        @app.middleware("http")
        async def offline(request: Request, call_next):
            return JSONResponse({"error": "Service temporairement indisponible"}, status_code=503)

    api = APIRouter(prefix="/api")
    for router in TOPIC_ROUTERS:
        api.include_router(router)
    app.include_router(api)

    @app.get("/health/", response_model=Health, tags=["health"])
    def health():
        return Health(status="ok")

    @app.exception_handler(InvalidParameter)
    async def invalid_parameter(request: Request, exc: InvalidParameter):
        log.info("path=%s status=400 err=%s", request.url.path, exc)
        return JSONResponse({"detail": str(exc)}, status_code=400)

    @app.exception_handler(UnknownLookupKey)
    async def unknown_lookup(request: Request, exc: UnknownLookupKey):
        return JSONResponse({}, status_code=404)

    @app.exception_handler(UpstreamStoreFailure)
    async def store_failure(request: Request, exc: UpstreamStoreFailure):
        log.error("path=%s status=500 query=%s", request.url.path, exc.query)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse({"error": "Not found"}, status_code=404)
        return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    log.info("app=ready routers=%d offline=%s", len(TOPIC_ROUTERS), settings.APP_OFFLINE)
    return app

app = create_app()

def run():
    uvicorn.run("barometre.main:app", host=settings.API_HOST, port=settings.API_PORT,
                log_level=settings.LOG_LEVEL.lower())

if __name__ == "__main__":
    run()
