"""
Signed source endpoints for local development
"""
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from wormhole.core.config import Settings, get_settings
from wormhole.core.logging_config import LoggingConfig
from wormhole.services.verifiers import sign_source

logger = LoggingConfig.get_logger(__name__)
router = APIRouter(prefix="/sources", tags=["sources"])


def _resolve_source_file(sources_dir: Path, name: str) -> Path:
    root = sources_dir.resolve()
    path = (root / name).resolve()
    if not path.is_relative_to(root) or not path.is_file():
        raise HTTPException(status_code=404, detail=f"Unable to find source {name}")
    return path


@router.get("/{name}", response_class=PlainTextResponse)
async def get_source(name: str, settings: Settings = Depends(get_settings)):
    """
    Serve a source file with its signature

    Sources are re-read on every request, so edits show up immediately.
    """
    if not settings.signing_secret:
        raise HTTPException(status_code=503, detail="Signing secret is not configured")

    path = _resolve_source_file(settings.sources_path, name)
    source = path.read_text(encoding="utf-8")
    logger.info(f"Serving source {name} ({len(source)} bytes)")
    return PlainTextResponse(
        content=source,
        headers={settings.signature_header: sign_source(source, settings.signing_secret)},
    )
