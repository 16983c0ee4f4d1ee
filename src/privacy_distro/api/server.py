import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from privacy_distro.api.routes import router
from privacy_distro.config import Settings
from privacy_distro.errors import PrivacyDistroError
from privacy_distro.service import PrivateCashService

logger = logging.getLogger("privacy_distro.api")


def create_app(service: PrivateCashService | None = None) -> FastAPI:
    """
    Build the API app.

    With no `service`, one is built from the environment at startup and
    closed at shutdown. A service passed in is used as-is and left open.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = service is None
        app.state.service = service or PrivateCashService.from_settings(Settings.from_env())
        yield
        if owned:
            await app.state.service.aclose()

    app = FastAPI(
        title="Privacy Distro",
        description="Fund a disposable deposit wallet, relay it into a privacy pool, and pay out in batches",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Allow CORS for easy frontend integration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.exception_handler(PrivacyDistroError)
    async def domain_error_handler(request: Request, exc: PrivacyDistroError):
        logger.info(f"{request.method} {request.url.path} failed: {exc.code}")
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.get("/health")
    async def health_check():
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()
