#!/usr/bin/env python3
"""Simple script to run the Personalizer API server."""

import os
import uvicorn
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

if __name__ == "__main__":
    # Get configuration from environment
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))

    print(f"Starting Personalizer API server on {host}:{port}")
    print(f"Create a client: POST http://{host}:{port}/api/create-client")
    print(f"View a client:   GET  http://{host}:{port}/client/<clientId>")
    print(f"Health check available at: http://{host}:{port}/health")

    # Run the server
    uvicorn.run(
        "personalizer_api.main:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "").lower() in ("1", "true"),
        log_level="info",
    )
