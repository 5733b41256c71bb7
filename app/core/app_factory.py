from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from fastapi import FastAPI

from app.api.routes import health_router, interview_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Interview Coach API",
        description=(
            "Practice job interviews: generate role-specific questions, submit "
            "answers (typed or transcribed from audio) and receive scored "
            "feedback. Requests are throttled per client address."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(interview_router, prefix="/api")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
