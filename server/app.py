"""
server/app.py - FastAPI app serving the latest valid-provider file.

Endpoints:
- GET /providers: the output file as written by the last pass
- GET /health: liveness, plain "ok"
"""

from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse, Response

from core.logging import get_logger

logger = get_logger(__name__)


def create_app(providers_path: Path | str) -> FastAPI:
    """Build the app bound to one providers file."""
    providers_path = Path(providers_path)
    app = FastAPI(title="Provider Health Checker")

    @app.get("/providers")
    async def get_providers():
        """Valid providers per chain."""
        try:
            content = providers_path.read_bytes()
        except OSError as e:
            logger.error(
                "Failed to read providers file",
                extra={"context": {"path": str(providers_path), "error": str(e)}},
            )
            raise HTTPException(status_code=500, detail="providers file unavailable")
        return Response(content=content, media_type="application/json")

    @app.get("/health", response_class=PlainTextResponse)
    async def health_check():
        return "ok"

    return app
