# spamscan/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from spamscan import __version__
from spamscan.detectors import ConcurrentDetector, build_detector
from spamscan.middleware.request_id import RequestIDMiddleware
from spamscan.routes.classify import router as classify_router
from spamscan.settings import DetectorSettings, get_settings
from spamscan.telemetry.errors import register_error_handlers
from spamscan.telemetry.logging import configure_root_logging

log = logging.getLogger(__name__)


def create_app(
    settings: Optional[DetectorSettings] = None,
    *,
    detector: Optional[ConcurrentDetector] = None,
) -> FastAPI:
    """Build the HTTP app; the detector is built eagerly so misconfiguration fails fast."""
    cfg = settings or get_settings()
    configure_root_logging(cfg.log_level)
    det = detector if detector is not None else build_detector(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("spamscan started", extra={"fragmenter": cfg.fragmenter, "markers": len(cfg.markers)})
        try:
            yield
        finally:
            await det.aclose()

    app = FastAPI(title="spamscan", version=__version__, lifespan=lifespan)
    app.state.detector = det
    app.state.settings = cfg
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)
    app.include_router(classify_router)
    return app
