from contextlib import asynccontextmanager
import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from OrderBridge import __version__
from OrderBridge.routers import (
    supplier_routes,
    pricing_routes,
    search_routes,
    order_routes,
)
from OrderBridge.database.db import create_db_and_tables
from OrderBridge.handlers.exception_handlers import register_exception_handlers
from OrderBridge.config.credentials import get_credential_resolver

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up...")
    # Product cache tables
    create_db_and_tables()

    # Read the master environment once so a bad environment.json shows at startup
    environment = get_credential_resolver().get_master_environment()
    logger.info(f"Supplier master environment: {environment}")

    yield  # App continues running

    logger.info("Shutting down...")


app = FastAPI(
    title="OrderBridge",
    description="Multi-supplier pricing, product search and order submission for CRM sales orders.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Register exception handlers
register_exception_handlers(app)

cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173,*")
cors_origins_list = [origin.strip() for origin in cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(supplier_routes.router, prefix="/api/suppliers", tags=["Suppliers"])
app.include_router(pricing_routes.router, prefix="/api/pricing", tags=["Pricing"])
app.include_router(search_routes.router, prefix="/api/products", tags=["Product Search"])
app.include_router(order_routes.router, prefix="/api/orders", tags=["Orders"])


@app.get("/")
async def root():
    return {"message": "OrderBridge API", "version": __version__}


if __name__ == "__main__":
    uvicorn.run(
        "OrderBridge.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
    )
