import os
import importlib
import logging
from fastapi import FastAPI, APIRouter, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from alembic.config import Config
from alembic import command

from core.database import settings
from apps.invoices.pricing import CostComputationError

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# The directory where all application folders are located
APPS_DIRECTORY = "apps"
API_PREFIX = "/api/v1"
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# --- Database Migration Function ---
def run_migrations():
    """Programmatically runs Alembic migrations."""
    logger.info("Running database migrations...")
    alembic_cfg = Config(os.path.join(BASE_DIR, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(BASE_DIR, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    try:
        # Run the 'upgrade head' command to apply all pending migrations
        command.upgrade(alembic_cfg, "head")
    except Exception:
        logger.exception("An error occurred during migrations")
        raise
    logger.info("Migrations complete.")

# Initialize the main FastAPI application
app = FastAPI(
    title="Two Wheels Workshop API",
    description="Customers, repair jobs, stock, invoicing and reports for a motorcycle workshop.",
    version="1.0.0",
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],  # Browser, Electron and Capacitor shells
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(CostComputationError)
async def cost_computation_error_handler(request: Request, exc: CostComputationError):
    logger.warning(f"Refused to price {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc)},
    )

@app.get("/")
async def root():
    return {"name": app.title, "version": app.version, "docs": "/docs"}

# --- Dynamic App Discovery and Router Inclusion ---
apps_path = os.path.join(BASE_DIR, APPS_DIRECTORY)

if not os.path.isdir(apps_path):
    logger.error(f"The directory '{APPS_DIRECTORY}' was not found.")
else:
    for item_name in sorted(os.listdir(apps_path)):
        app_dir = os.path.join(apps_path, item_name)

        if os.path.isdir(app_dir) and not item_name.startswith(('_', '.')):
            module_name = f"{APPS_DIRECTORY}.{item_name}.router"
            try:
                # Import the models from each app to ensure Alembic can detect them
                if os.path.isfile(os.path.join(app_dir, "models.py")):
                    importlib.import_module(f'{APPS_DIRECTORY}.{item_name}.models')

                router_module = importlib.import_module(module_name)
                router_instance = getattr(router_module, "router", None)

                if router_instance and isinstance(router_instance, APIRouter):
                    app.include_router(
                        router_instance,
                        prefix=f"{API_PREFIX}/{item_name}",
                        tags=[item_name.capitalize()]
                    )
                    logger.info(f"Loaded router from '{item_name}'.")
                else:
                    logger.warning(f"Could not find a valid APIRouter named 'router' in '{module_name}'.")

            except ImportError:
                logger.exception(f"Failed to import router for '{item_name}'")

# --- Startup Event Handler ---
@app.on_event("startup")
def startup_event():
    """Run database migrations on application startup."""
    run_migrations()
    logger.info("Application is ready to serve requests.")
