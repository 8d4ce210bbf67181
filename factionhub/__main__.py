"""
factionhub.__main__ — Entry point for ``python -m factionhub``
==============================================================

Wiring:
1. Load .env (secrets, DATABASE_URL).
2. Configure logging.
3. Serve the FastAPI app with uvicorn.

Run with::

    python -m factionhub
"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("factionhub")


def main() -> None:
    """Bootstrap and run the Faction Hub API."""
    load_dotenv()
    port = int(os.getenv("PORT", "8000"))
    logger.info("Starting Faction Hub API on port %d", port)
    uvicorn.run("factionhub.api.main:app", host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
