#!/usr/bin/env python3
"""Start the Habla Web API server."""

import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("HABLA_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "habla.api.main:create_app",
        factory=True,
        host="127.0.0.1",
        port=8000,
        reload=True,
        reload_dirs=[str(project_root / "src")],
    )
