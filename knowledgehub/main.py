import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler, request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from knowledgehub.db.database import init_db
from knowledgehub.routes import admin, api, auth, blog, pages, seo
from knowledgehub.security import RequestLogMiddleware, SecurityHeadersMiddleware
from knowledgehub.services.errors import ConflictError, InvalidFieldError, InvalidReferenceError

logging.basicConfig(
    level=os.getenv("KH_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

IS_PRODUCTION = os.getenv("KH_ENV", "development") == "production"


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database initialized")
    yield


app = FastAPI(
    title="KnowledgeHub",
    description="Personal publishing: posts, categories and tags",
    lifespan=lifespan,
    docs_url=None if IS_PRODUCTION else "/docs",
    redoc_url=None if IS_PRODUCTION else "/redoc",
)

app.state.limiter = auth.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLogMiddleware)

# Static files
app.mount(
    "/static",
    StaticFiles(directory=Path(__file__).parent / "static"),
    name="static",
)


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api")


@app.exception_handler(StarletteHTTPException)
async def api_http_exception(request: Request, exc: StarletteHTTPException):
    if not _is_api(request):
        return await http_exception_handler(request, exc)
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def api_validation_error(request: Request, exc: RequestValidationError):
    if not _is_api(request):
        return await request_validation_exception_handler(request, exc)
    return JSONResponse(
        {"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        status_code=400
    )


@app.exception_handler(ConflictError)
async def conflict_error(request: Request, exc: ConflictError):
    return JSONResponse({"error": str(exc)}, status_code=409)


@app.exception_handler(InvalidFieldError)
@app.exception_handler(InvalidReferenceError)
async def bad_request_error(request: Request, exc: Exception):
    return JSONResponse({"error": str(exc)}, status_code=400)


@app.exception_handler(SQLAlchemyError)
async def storage_error(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Storage failure on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


# Include routes
app.include_router(pages.router)
app.include_router(blog.router)
app.include_router(seo.router)
app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(api.router)
