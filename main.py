"""
Entry point for the Service Binding Validator
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
from binding_validator.app import app
from binding_validator.config.settings import PORT

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Service Binding Validator on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
