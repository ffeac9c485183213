from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from catalog_api import messages
from catalog_api.api.routes import categories, products
from catalog_api.config import settings
from catalog_api.database import engine, init_models
from catalog_api.exceptions import CatalogError
import logging
import os
import sys
import time

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

# Requests are logged by the middleware below
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Resource-Policy": "same-origin",
}

app = FastAPI(
    title="Catalog API",
    description="Categories and products with email notifications and image uploads",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:
        # Unexpected errors are answered here so they get the same headers and log line
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        response = JSONResponse(status_code=500, content={"error": str(exc)})
    elapsed_ms = (time.perf_counter() - start) * 1000
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    logger.info("%s %s %s %.1f ms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


# Include routers
app.include_router(categories.router)
app.include_router(products.router)

# Uploaded images are served by the app itself when stored locally
if settings.storage_backend.lower() == "local":
    os.makedirs(settings.media_root, exist_ok=True)
    app.mount("/media", StaticFiles(directory=settings.media_root), name="media")


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err["loc"][1:]) or "body", "msg": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (404, 405):
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        return JSONResponse(
            status_code=404,
            content={"error": f"Route {request.method} {path} not found"}
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Welcome banner."""
    return messages.WELCOME_BANNER


@app.on_event("startup")
async def startup():
    """Initialize database on startup."""
    if settings.create_tables:
        await init_models()
    logger.info("Catalog API ready (storage=%s, cors origin=%s)", settings.storage_backend, settings.frontend_url)


@app.on_event("shutdown")
async def shutdown():
    """Cleanup on shutdown."""
    await engine.dispose()


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run("catalog_api.main:app", host="0.0.0.0", port=settings.port)
