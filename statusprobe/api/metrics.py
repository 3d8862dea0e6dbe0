from fastapi import APIRouter, Depends, Request, Response

from prometheus_client import CollectorRegistry

from statusprobe.middleware.auth import CredentialCheck, require_basic_auth
from statusprobe.services.exposition import render


def create_metrics_router(registry: CollectorRegistry, check: CredentialCheck) -> APIRouter:
    """Router with the single scrape endpoint.

    Scraping only reads the current snapshot; probes are driven by the loop's
    timer, never by requests.
    """
    router = APIRouter(tags=["Metrics"])

    @router.get(
        "/metrics",
        summary="Scrape probe results",
        description="Latest HTTP status code per configured target, in Prometheus "
                    "text or OpenMetrics format depending on the Accept header. "
                    "Requires HTTP Basic credentials.",
        responses={
            200: {"description": "Current status code gauge for every target"},
            401: {"description": "Missing or wrong credentials"},
        },
    )
    def metrics(request: Request, _user: str = Depends(require_basic_auth(check))) -> Response:
        # sync handler: runs on the threadpool, one thread per in-flight scrape
        body, content_type = render(registry, request.headers.get("accept"))
        return Response(content=body, media_type=content_type)

    return router
