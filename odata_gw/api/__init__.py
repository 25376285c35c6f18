"""
odata_gw.api - REST API Gateway
===============================

FastAPI-based REST gateway that exposes remote OData services via HTTP.

Usage
-----
>>> from odata_gw.api import create_app
>>> app = create_app()
>>> # Run with: uvicorn odata_gw.api:app

Or run directly:
>>> python -m odata_gw.api

"""

from pathlib import Path

from dotenv import load_dotenv

# Load .env before building the default app
env_path = Path.cwd() / ".env"
if not env_path.exists():
    env_path = Path(__file__).resolve().parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

from odata_gw.api.gateway import create_app, ODataGateway

# Create default app instance for uvicorn
app = create_app()

__all__ = [
    "create_app",
    "ODataGateway",
    "app",
]
