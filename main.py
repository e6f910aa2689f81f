#!/usr/bin/env python3
import logging
import os

import uvicorn
from dotenv import load_dotenv

from app.app import create_app

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create the FastAPI app
app = create_app()


if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload_enabled = os.getenv("DATATABLES_DEV_MODE", "false").lower() == "true"

    logging.getLogger(__name__).info("Starting datatables service on %s:%s", host, port)
    uvicorn.run("main:app", host=host, port=port, reload=reload_enabled)
