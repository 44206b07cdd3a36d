"""
Docebo Assistant - chat layer for Docebo LMS administration
Serves the chat and CSV endpoints with FastAPI
"""

import sys
import uvicorn
import logging
from config.settings import PORT, BOT_NAME, ENVIRONMENT, load_docebo_config
from utils.error_handler import ConfigError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    """Start the API server"""
    logger.info(f"🚀 Starting {BOT_NAME}...")

    try:
        config = load_docebo_config()
    except ConfigError as e:
        logger.error(f"❌ {e.message}")
        logger.error("Set the DOCEBO_* variables in your environment or .env file")
        sys.exit(1)

    logger.info(f"📡 Server will listen on port {PORT}")
    logger.info("="*60)
    logger.info("⚙️  Configuration:")
    logger.info(f"  - Docebo instance: {config.base_url}")
    logger.info(f"  - Environment: {ENVIRONMENT}")
    logger.info("  - Endpoints: /api/chat, /api/chat/csv, /health")
    logger.info("="*60 + "\n")

    uvicorn.run(
        "api.server:app",
        host="0.0.0.0",
        port=PORT,
        reload=False,
        log_level="info"
    )


if __name__ == "__main__":
    main()
