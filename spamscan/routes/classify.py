from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field

from spamscan.detectors import ConcurrentDetector

router = APIRouter()


class ClassifyRequest(BaseModel):
    text: str = Field(..., max_length=1_000_000)


class ClassifyResponse(BaseModel):
    spam: bool
    fragments: int
    completed: int
    cancelled: int
    failed: int
    duration_ms: int


def _detector(request: Request) -> ConcurrentDetector:
    detector: ConcurrentDetector = request.app.state.detector
    return detector


@router.post("/classify", response_model=ClassifyResponse)
async def classify(request: Request, payload: ClassifyRequest) -> Dict[str, Any]:
    report = await _detector(request).inspect(payload.text)
    # Unshadowed fragment failures surface as 502 via the error handlers.
    report.raise_for_errors()
    return report.to_dict()


@router.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@router.get("/metrics")
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
