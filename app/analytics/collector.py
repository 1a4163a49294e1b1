"""
Analytics Collection Middleware

Records one anonymized page view per request. The response is produced
first; collection is scheduled as a detached task afterwards, so analytics
can neither delay nor break the request.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional, Sequence, Set

from fastapi import Request

from app.models import AnalyticsEvent
from app.models.analytics_event import utcnow

from .batch_processor import BatchProcessor
from .ip_anonymizer import anonymize_ip
from .path_cleaner import clean_path

logger = logging.getLogger(__name__)

FALLBACK_IP = "0.0.0.0"
UNKNOWN_USER_AGENT = "Unknown"


def get_client_ip(request: Request) -> str:
    """First of X-Forwarded-For (leftmost entry), X-Real-IP, CF-Connecting-IP"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    cf_connecting_ip = request.headers.get("cf-connecting-ip")
    if cf_connecting_ip:
        return cf_connecting_ip

    return FALLBACK_IP


def get_raw_path(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


class AnalyticsCollector:
    """
    HTTP middleware feeding a :class:`BatchProcessor`.

    Register with ``app.middleware("http")(collector)``. When no processor is
    passed, the one on ``request.app.state.analytics`` is used, which lets the
    middleware be installed before the lifespan handler builds the pipeline.
    """

    def __init__(
        self,
        processor: Optional[BatchProcessor] = None,
        generalize_ids: bool = False,
        additional_sensitive_params: Sequence[str] = (),
    ):
        self.processor = processor
        self.generalize_ids = generalize_ids
        self.additional_sensitive_params = tuple(additional_sensitive_params)
        self._tasks: Set[asyncio.Task] = set()

    async def __call__(self, request: Request, call_next):
        received_at = utcnow()
        response = await call_next(request)

        try:
            processor = self._resolve_processor(request)
            if processor is not None:
                task = asyncio.get_running_loop().create_task(
                    self.collect(request, processor, received_at)
                )
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
        except Exception:
            logger.exception("Error scheduling analytics collection")

        return response

    def _resolve_processor(self, request: Request) -> Optional[BatchProcessor]:
        if self.processor is not None:
            return self.processor
        runtime = getattr(request.app.state, "analytics", None)
        return runtime.processor if runtime is not None else None

    def build_event(self, request: Request, received_at: Optional[datetime] = None) -> AnalyticsEvent:
        headers = request.headers
        referer = headers.get("referer") or headers.get("referrer") or None
        return AnalyticsEvent(
            anonymized_ip=anonymize_ip(get_client_ip(request)),
            user_agent=headers.get("user-agent") or UNKNOWN_USER_AGENT,
            path=clean_path(
                get_raw_path(request),
                generalize_ids=self.generalize_ids,
                additional_sensitive_params=self.additional_sensitive_params,
            ),
            referer=referer,
            timestamp=received_at or utcnow(),
        )

    async def collect(
        self,
        request: Request,
        processor: BatchProcessor,
        received_at: Optional[datetime] = None
    ) -> None:
        """Extract, anonymize and buffer one event. Errors are logged, never raised."""
        try:
            event = self.build_event(request, received_at)
            await processor.add_event(event)
        except Exception:
            logger.exception("Error processing analytics event")

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait for scheduled collection tasks to finish"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
