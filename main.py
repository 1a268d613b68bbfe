"""
NexMind Server Entry Point

Run with: python main.py
Or with uvicorn: uvicorn main:app --reload
"""

import os

import uvicorn

from app import app

if __name__ == "__main__":
    # Use reload only in development
    is_dev = os.getenv("ENVIRONMENT", "development") == "development"

    uvicorn.run(
        "app:app" if is_dev else app,
        host=os.getenv("NEXMIND_HOST", "0.0.0.0"),
        port=int(os.getenv("NEXMIND_PORT", "8000")),
        reload=is_dev,
        log_level="info",
    )
