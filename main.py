"""
Entry point for the User REST API
"""

import sys
import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

# Import the FastAPI application
from app import app
from config.settings import PORT, ENV, get_database_config

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting User REST API on port {PORT} ({ENV}, database {get_database_config()['database']})")
    logger.info(f"Health: http://localhost:{PORT}/health  API: http://localhost:{PORT}/api/users")
    # uvicorn handles SIGTERM/SIGINT: stops accepting, drains in-flight requests, runs lifespan shutdown
    uvicorn.run(app, host="0.0.0.0", port=PORT)
