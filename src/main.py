# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Server entry point.

Example:
    $ eduscope
    $ API_PORT=8080 python -m src.main
"""

import uvicorn

from src.core.config import get_settings


def run() -> None:
    """Serve the API with uvicorn using the API_* settings."""
    settings = get_settings()

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        # uvicorn ignores workers when reload is on
        workers=1 if settings.api.reload else settings.api.workers,
        reload=settings.api.reload,
        log_config=None,
    )


if __name__ == "__main__":
    run()
