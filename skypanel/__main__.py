"""
skypanel.__main__ — Entry point for ``python -m skypanel``
===========================================================

Wiring:
1. Load .env (secrets).
2. Configure logging once for the API, uvicorn and discord.py.
3. Serve :data:`skypanel.api.main.app` on the configured port.  The app
   lifespan creates the tables and starts the bot client.
"""

from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

from skypanel.config import load_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("skypanel")


def main() -> None:
    """Bootstrap and run the SkyPanel backend."""
    load_dotenv()
    cfg = load_config()

    logger.info("Backend starting on port %d (%s)", cfg.port, cfg.base_url)
    uvicorn.run("skypanel.api.main:app", host="0.0.0.0", port=cfg.port, log_config=None)


if __name__ == "__main__":
    main()
