from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reqflow import __version__
from reqflow.core.config import get_settings
from reqflow.core.logger import configure_logging
from reqflow.core.workflow import WorkflowError
from reqflow.api.errors import workflow_error_handler
from reqflow.api.routers import auth, users, requests

settings = get_settings()

configure_logging(settings)

app = FastAPI(
    title=settings.app_name,
    description="Employee request approval workflow",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["GET", "POST", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)

app.add_exception_handler(WorkflowError, workflow_error_handler)

# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(requests.router, prefix="/api")


@app.get("/health")
def health_check():
    return {"status": "healthy", "version": __version__}
