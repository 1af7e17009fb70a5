"""
flowgen FastAPI server — compiles editor graphs over HTTP.

Start with:
    python -m flowgen.server.main

Or via uvicorn directly:
    uvicorn flowgen.server.main:app --port 3001 --reload

Environment (also read from a .env file in the working directory):
    FLOWGEN_PATTERNS_FILE, FLOWGEN_LANGUAGE_ID   see server/state.py
    FLOWGEN_LOG_LEVEL                            default INFO
    FLOWGEN_HOST / FLOWGEN_PORT                  default 0.0.0.0:3001
"""
from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

# Settings must be in os.environ before server.state is imported.
load_dotenv()

logging.basicConfig(
    level=os.environ.get("FLOWGEN_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from flowgen import __version__  # noqa: E402
from flowgen.server.routes.compile_routes import router  # noqa: E402

# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(title="flowgen API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "flowgen.server.main:app",
        host=os.environ.get("FLOWGEN_HOST", "0.0.0.0"),
        port=int(os.environ.get("FLOWGEN_PORT", "3001")),
        reload=True,
    )
