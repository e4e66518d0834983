from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from solforge import __version__
from solforge.api.v1.router import api_router
from solforge.core.config import settings
from solforge.core.exceptions import BoilerplateLoadError, ChatStreamError, SandboxError, SolforgeError
from solforge.core.logging_config import logger
from solforge.core.middleware import RequestLoggingMiddleware
from solforge.modules.sandbox import get_sandbox_provider


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME} parser service...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Tags: <{settings.ARTIFACT_TAG}> / <{settings.ACTION_TAG}>")
    logger.info("=" * 60)

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    provider = get_sandbox_provider()
    if provider.is_ready:
        await provider.reset()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Streaming parser and merge engine for generated Solana dApps",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)


def _status_for(exc: SolforgeError) -> int:
    if isinstance(exc, ChatStreamError):
        return 502
    if isinstance(exc, (SandboxError, BoilerplateLoadError)):
        return 503
    return 500


# Exception handlers
@app.exception_handler(SolforgeError)
async def solforge_exception_handler(request: Request, exc: SolforgeError):
    logger.warning(f"{exc.code}: {exc.message}")
    return JSONResponse(status_code=_status_for(exc), content={"error": exc.to_dict()})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("solforge.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
