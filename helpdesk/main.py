import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import SQLModel

from .core.config import get_settings
from .core.database import engine
from .core.errors import HelpdeskError
from .api.auth import router as auth_router
from .api.users import router as user_router
from .api.organizations import router as org_router
from . import models  # noqa: F401  registers every table on SQLModel.metadata

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Helpdesk API",
    description="Organizations, teams and code-based invitations for the helpdesk",
    version="0.1.0"
)


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)


app.add_middleware(
    CORSMiddleware,
    allow_origins=['http://localhost:3000', 'http://localhost:8000'],  # Frontend URLs
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HelpdeskError)
async def helpdesk_error_handler(request: Request, exc: HelpdeskError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.on_event("startup")
async def on_startup():
    create_db_and_tables()


@app.get("/api/health", tags=['Health Check'])
async def health_check():
    return {"status": "ok", "message": "Helpdesk API is running"}

app.include_router(auth_router, prefix='/api/auth', tags=['Authentication'])
app.include_router(user_router, prefix='/api/users', tags=['Users'])
app.include_router(org_router, prefix='/api/organization', tags=['Organizations'])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("helpdesk.main:app", host="0.0.0.0", port=8000, reload=True)
