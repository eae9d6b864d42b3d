import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from cbdra.core.config import settings
from cbdra.core.logger import setup_logging
from cbdra.db.init_db import create_initial_data, init_db
from cbdra.db.session import SessionLocal, engine
from cbdra.routers import allocations, auth, incidents, notifications, support, upload, users

logger = logging.getLogger("cbdra.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_db(engine)
    async with SessionLocal() as session:
        await create_initial_data(session)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API for CBDRA - community based disaster response",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    message = str(errors[0].get("msg", "Invalid request"))
    return message.removeprefix("Value error, ")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": validation_message(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error: path={request.url.path}, error={exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


app.include_router(auth.router, prefix=settings.API_V1_STR, tags=["Authentication"])
app.include_router(users.router, prefix=settings.API_V1_STR, tags=["Users"])
app.include_router(incidents.router, prefix=settings.API_V1_STR, tags=["Incidents"])
app.include_router(allocations.router, prefix=settings.API_V1_STR, tags=["Allocations"])
app.include_router(notifications.router, prefix=settings.API_V1_STR, tags=["Notifications"])
app.include_router(upload.router, prefix=settings.API_V1_STR, tags=["Upload"])
app.include_router(support.router, prefix=settings.API_V1_STR, tags=["Support"])

# UPLOAD_DIR ends in the URL's last segment, so serve its parent at the prefix's parent
app.mount(
    str(Path(settings.UPLOAD_URL_PREFIX).parent),
    StaticFiles(directory=str(Path(settings.UPLOAD_DIR).parent), check_dir=False),
    name="uploads",
)


@app.get("/api/health", tags=["Health"])
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
