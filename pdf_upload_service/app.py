"""
PDF Upload Service - FastAPI application.

POST / renders the posted HTML to PDF, uploads it to the configured Graph
drive folder and returns the base64 PDF together with the file URL.
The HTTP status is always 200 once a response is composed; failures are
reported in the JSON body.
"""

import logging
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse

from . import __version__
from .auth import verify_function_key
from .config import ServiceSettings, get_settings, validate_config_on_startup
from .credentials import CredentialConfigurationError, select_credential_source
from .models import HealthResponse, RenderRequest
from .orchestrator import ReportOrchestrator
from .renderer import RendererClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="PDF Upload Service",
    version=__version__,
    description="Renders HTML to PDF with Browserless and uploads it to a Graph drive"
)


def build_orchestrator(settings: ServiceSettings) -> ReportOrchestrator:
    """Wire the request pipeline from a single settings object."""
    renderer = RendererClient(
        settings.browser_ws_endpoint,
        timeout=settings.render_timeout_seconds,
        pdf_format=settings.pdf_format,
        print_background=settings.print_background,
    )
    return ReportOrchestrator(renderer, select_credential_source(settings), settings)


def get_orchestrator() -> ReportOrchestrator:
    """Return the process-wide orchestrator, building it on first use."""
    orchestrator = getattr(app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = build_orchestrator(get_settings())
        app.state.orchestrator = orchestrator
    return orchestrator


@app.on_event("startup")
async def configure_on_startup():
    """Validate configuration and select the credential source once."""
    logger.info("PDF Upload Service starting - validating configuration...")
    settings = validate_config_on_startup()
    app.state.orchestrator = build_orchestrator(settings)
    logger.info(f"Credential source: {app.state.orchestrator.credential_source.name}")


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint for container orchestration.

    Returns HTTP 503 if the credential source cannot be built.
    """
    settings = get_settings()
    try:
        orchestrator = get_orchestrator()
    except CredentialConfigurationError as e:
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "timestamp": datetime.utcnow().isoformat(),
                "environment": settings.environment,
                "error": str(e),
            }
        )

    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        environment=settings.environment,
        credential_source=orchestrator.credential_source.name,
    )


@app.post("/", dependencies=[Depends(verify_function_key)])
async def html_to_pdf(
    request: RenderRequest,
    orchestrator: ReportOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """
    Render, upload and respond.

    Returns:
        JSONResponse (always 200) with base64, success, uploadUrl, uploadErrors
    """
    response = await orchestrator.handle(request)
    logger.info("Sending Response")
    return JSONResponse(status_code=200, content=response.model_dump())
