"""
main.py
-------

Entry point for the **Feedback Co-Pilot** FastAPI service.

Responsibilities:
  • Initialize FastAPI app and register API routes.
  • Render every service error as a JSON `{"error": message}` body.
  • Prepare the temporary upload directory on startup.
  • Verify the Ollama model is present when Ollama is the configured provider.

Startup Sequence:
  1. Create `settings.upload_dir` if it does not exist.
  2. Log the configured model and which credentials are missing.
  3. For `ollama:` models, check (and pull) the model on the server.
  4. Serve routes defined in `feedback_copilot/api/routes.py`.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import router
from .core.config import settings
from .core.errors import CopilotError, copilot_error_handler
from .core.logger import get_logger
from .services.llm import OllamaChat

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan handler for startup/shutdown events.

    During startup:
      - Creates the upload directory.
      - Reports missing credentials without failing.
      - Verifies or downloads the Ollama model when one is configured.
    """
    os.makedirs(settings.upload_dir, exist_ok=True)
    logger.info("[startup] Using model %s", settings.llm_name)

    if settings.llm_provider == "gemini" and not settings.gemini_api_key:
        logger.warning("[startup] GEMINI_API_KEY is not set; /api/analyze will fail")
    if not settings.airtable_configured:
        logger.warning("[startup] Airtable is not configured; /api/airtable/* will fail")

    if settings.llm_provider == "ollama":
        try:
            OllamaChat(settings).ensure_model()
        except Exception as e:
            logger.error("[startup] Failed to verify/pull model: %s", e)

    yield
    logger.info("[shutdown] Lifespan cleanup complete.")


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# Create and configure FastAPI app
app = FastAPI(
    title="Feedback Co-Pilot",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_exception_handler(CopilotError, copilot_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Register all routes
app.include_router(router)


@app.get("/")
def root():
    """Info endpoint for system diagnostics."""
    return {
        "service": "Feedback-CoPilot",
        "message": "AI-generated curator feedback for student homework.",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    logger.info("Feedback Co-Pilot server running on http://localhost:%s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
