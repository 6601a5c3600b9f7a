#!/usr/bin/env python3
"""Run the knowledge pool webhook server."""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from dotenv import load_dotenv
load_dotenv()


def main():
    import uvicorn
    from kpbridge.config import get_settings

    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"""
    ╔═══════════════════════════════════════════════════════╗
    ║           Knowledge Pool Search Connector             ║
    ╠═══════════════════════════════════════════════════════╣
    ║  URL: http://{settings.SERVER_HOST}:{settings.SERVER_PORT:<5}
    ║  Webhook: /api/v1/webhooks/events/receive             ║
    ║  Hot Reload: {str(settings.SERVER_RELOAD):<5}                              ║
    ╚═══════════════════════════════════════════════════════╝
    """)

    uvicorn.run(
        "server.app:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.SERVER_RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
