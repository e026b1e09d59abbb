import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tastebase.config import get_settings
from tastebase.errors import InvalidIdentifier
from tastebase.routers import auth, profile, recipes, uploads

settings = get_settings()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Tastebase API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Build allowed origins list (supports comma-separated FRONTEND_URL for multiple domains)
_origins = ["http://localhost:3000"]
for origin in settings.FRONTEND_URL.split(","):
    origin = origin.strip()
    if origin and origin not in _origins:
        _origins.append(origin)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(recipes.router, prefix="/api/recipes", tags=["Recipes"])
app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])
app.include_router(uploads.router, prefix="/api", tags=["Uploads"])


@app.exception_handler(InvalidIdentifier)
async def invalid_identifier_handler(request: Request, exc: InvalidIdentifier):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    content = {"error": "Internal server error", "message": str(exc)}
    if settings.DEBUG:
        content["details"] = "".join(traceback.format_exception(exc))
    return JSONResponse(status_code=500, content=content)


@app.get("/health")
def health():
    return {"status": "ok", "backend": settings.DATA_BACKEND}


@app.on_event("startup")
def startup():
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Tastebase starting with {settings.DATA_BACKEND} backend")
