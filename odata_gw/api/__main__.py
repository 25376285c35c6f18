"""
odata_gw.api - Run as module

Usage: python -m odata_gw.api
"""

import logging
import os
import uvicorn

logger = logging.getLogger("odata_gw.api")


def main():
    """Run the API gateway server."""
    host = os.environ.get("ODATA_HOST", "0.0.0.0")
    port = int(os.environ.get("ODATA_PORT", "5050"))
    reload = os.environ.get("ODATA_RELOAD", "false").lower() == "true"
    log_level = os.environ.get("ODATA_LOG_LEVEL", "info")

    logging.basicConfig(level=log_level.upper())
    logger.info("Starting OData Gateway on %s:%s", host, port)

    uvicorn.run(
        "odata_gw.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
