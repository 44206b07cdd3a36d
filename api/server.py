import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.chat import router as chat_router
from api.csv_upload import router as csv_router
from bot import docebo_api as docebo_module
from bot.docebo_api import get_docebo_api
from config.settings import BOT_NAME, ENVIRONMENT, LOG_LEVEL, load_docebo_config
from utils.error_handler import ConfigError, DoceboAPIError, register_error_handlers

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=BOT_NAME,
    version="1.0.0",
    description="Chat assistant for Docebo LMS administration"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register error handlers
register_error_handlers(app)

app.include_router(chat_router)
app.include_router(csv_router)


@app.on_event("shutdown")
async def shutdown_event():
    """Close the shared Docebo HTTP client"""
    if docebo_module.docebo_api is not None:
        await docebo_module.docebo_api.close()
        logger.info("✓ Docebo client closed")


@app.get("/")
async def root():
    """Health check endpoint"""
    return {"status": "ok", "service": BOT_NAME}


@app.get("/health")
async def health_check():
    """Detailed health check with dependency verification"""
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": ENVIRONMENT,
        "components": {}
    }

    # Check Docebo configuration
    try:
        load_docebo_config()
        health_status["components"]["docebo_config"] = "configured"
    except ConfigError as e:
        health_status["components"]["docebo_config"] = f"not_configured: {e.message}"
        health_status["status"] = "unhealthy"
        return health_status

    # Check Docebo authentication
    try:
        await get_docebo_api().health_check()
        health_status["components"]["docebo_api"] = "healthy"
    except DoceboAPIError as e:
        health_status["components"]["docebo_api"] = f"unhealthy: {e.message}"
        health_status["status"] = "degraded"

    return health_status
