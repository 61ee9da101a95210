"""Main entry point for PromptTracker.

Usage:
    python main.py

The application will start on http://127.0.0.1:9200 unless SERVER_HOST /
SERVER_PORT say otherwise.
"""

import logging
import os
import sys
from pathlib import Path
import uvicorn
from dotenv import load_dotenv

# Add project root to Python path for module imports
project_root = Path(__file__).parent.absolute()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Load environment variables
load_dotenv()

if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    # Get server configuration
    host = os.getenv("SERVER_HOST", "127.0.0.1")
    port = int(os.getenv("SERVER_PORT", "9200"))
    real_llm = os.getenv("PROMPT_TRACKER_USE_REAL_LLM", "false").lower() == "true"

    print("=" * 60)
    print("PromptTracker")
    print("=" * 60)
    print(f"Starting server on http://{host}:{port}")
    print(f"LLM mode: {'real' if real_llm else 'mock'}")
    print("Press Ctrl+C to stop")
    print("=" * 60)

    # Start uvicorn server
    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        reload=os.getenv("SERVER_RELOAD", "false").lower() == "true",
        log_level="info"
    )
