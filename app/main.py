import asyncio
import os
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from app.api import auth, bookings, comments, services
from app.api.deps import get_captcha_service
from app.core.config import settings
from app.core.exceptions import BookingAppError, StorageError
from app.core.logger import setup_logging, logger

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Starting booking site backend")
    os.makedirs(settings.UPLOADS_DIR, exist_ok=True)
    sweeper = asyncio.create_task(get_captcha_service().run_cleanup_loop())
    yield
    # Shutdown
    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass
    logger.info("🛑 Shutting down backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    https_only=settings.ENVIRONMENT == "production",
)

@app.exception_handler(BookingAppError)
async def booking_app_error_handler(request: Request, exc: BookingAppError):
    if isinstance(exc, StorageError):
        logger.error(f"💾 Storage failure on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=500, content={"message": "Internal Server Error"})
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"🔥 UNHANDLED ERROR: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "detail": "An unexpected error occurred. Please try again later."}
    )

# Include routers
app.include_router(services.router, prefix=settings.API_V1_STR, tags=["Services"])
app.include_router(bookings.router, prefix=settings.API_V1_STR, tags=["Bookings"])
app.include_router(comments.router, prefix=settings.API_V1_STR, tags=["Comments"])
app.include_router(auth.router, prefix=settings.API_V1_STR, tags=["Auth"])

# Directory is created on startup
app.mount("/uploads", StaticFiles(directory=settings.UPLOADS_DIR, check_dir=False), name="uploads")

@app.get("/health")
async def health_check():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
