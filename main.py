import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from database import engine, Base, settings
from routers import auth, events

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting marketing calendar API")
    yield
    engine.dispose()
    logger.info("Shutting down marketing calendar API")

app = FastAPI(
    title="Marketing Calendar API",
    description="Session-authenticated calendar of marketing events",
    version="1.0.0",
    lifespan=lifespan
)

# Credentialed requests from any origin; the origin is echoed back
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=".*",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    logger.info(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Solicitud inválida"}
    )

# Include routers
app.include_router(auth.router, prefix="/api", tags=["authentication"])
app.include_router(events.router, prefix="/api/events", tags=["events"])

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

# Mounted last so the API routes take precedence
app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")

if __name__ == "__main__":
    # Behind a proxy (Render), trust X-Forwarded-* so cookies and URLs are right
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT, proxy_headers=True, forwarded_allow_ips="*")
