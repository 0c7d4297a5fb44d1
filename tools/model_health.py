"""Model availability and latency check."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from models.enums import HealthStatus, OperationKind
from models.request import GenerationRequest
from tools.error_classifier import normalize_error

logger = logging.getLogger(__name__)

HEALTH_PROMPT = "Introduce yourself in one sentence."


@dataclass
class ModelHealthResult:
    model_id: str
    status: HealthStatus
    latency_ms: Optional[int] = None
    error: Optional[str] = None
    response_preview: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


async def check_model_health(invoker, model: str) -> ModelHealthResult:
    """Send one short prompt to ``model`` and report whether it answered.

    Never raises; failures are reported as ``unhealthy``. No retries, so the
    measured latency is a single round trip.
    """
    request = GenerationRequest(kind=OperationKind.MANIPULATE_TEXT, model=model)
    started = time.monotonic()
    try:
        result = await invoker.invoke(request, HEALTH_PROMPT)
    except Exception as e:
        latency = int((time.monotonic() - started) * 1000)
        logger.warning("Model %s unhealthy after %dms: %s", model, latency, e)
        return ModelHealthResult(
            model_id=model,
            status=HealthStatus.UNHEALTHY,
            latency_ms=latency,
            error=normalize_error(e)[:300],
        )

    return ModelHealthResult(
        model_id=model,
        status=HealthStatus.HEALTHY,
        latency_ms=result.usage.latency_ms,
        response_preview=result.text[:100],
    )
