"""PropertyFlows Service API main application module."""

from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from propertyflows import __version__
from propertyflows.config import env
from propertyflows.config.logging import get_logger
from propertyflows.middleware.logging import StructuredLoggingMiddleware
from propertyflows.routers import (
  admin_organizations_router,
  admin_plans_router,
  organizations_router,
  subscription_router,
  webhooks_router,
)

logger = get_logger("propertyflows.api")


def _service_version() -> str:
  try:
    return pkg_version("propertyflows-service")
  except PackageNotFoundError:
    return __version__


def create_app() -> FastAPI:
  """
  Create the FastAPI app and include the routers.

  Returns:
      FastAPI: The configured FastAPI application.
  """
  app = FastAPI(
    title="PropertyFlows API",
    version=_service_version(),
    description="Organization verification and subscription lifecycle API",
    openapi_url="/openapi.json",
  )

  app.state.current_time = datetime.now(timezone.utc)

  @app.on_event("startup")
  async def startup_event():
    """Validate configuration on startup."""
    logger.info("Starting PropertyFlows API...")

    errors = env.validate()
    if errors:
      logger.error(f"Configuration validation failed: {errors}")
      if env.is_production():
        # In production, fail fast on invalid configuration
        raise RuntimeError(f"Invalid configuration: {', '.join(errors)}")
      logger.warning("Continuing with invalid configuration (non-production)")
    else:
      logger.info("Configuration validated successfully")

    logger.info("PropertyFlows API startup complete")

  cors_origins = env.get_cors_origins()
  logger.info(f"API CORS origins: {cors_origins}")

  app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=env.CORS_ALLOW_CREDENTIALS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=[
      "Accept",
      "Accept-Language",
      "Content-Type",
      "Authorization",
      "X-Requested-With",
      "Stripe-Signature",
    ],
    expose_headers=["X-Request-ID"],
    max_age=3600,
  )

  app.add_middleware(StructuredLoggingMiddleware)

  @app.middleware("http")
  async def security_headers_middleware(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if env.is_production() or env.is_staging():
      response.headers["Strict-Transport-Security"] = (
        "max-age=31536000; includeSubDomains"
      )

    return response

  @app.exception_handler(Exception)
  async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler returning generic error and request ID.

    Internal exception details are logged server-side; clients receive a generic
    message with a correlation identifier.
    """
    request_id = getattr(request.state, "request_id", None)

    logger.error("Unhandled exception", extra={"request_id": request_id}, exc_info=True)

    return JSONResponse(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      content={"detail": "Internal server error", "request_id": request_id},
    )

  @app.get("/health", tags=["status"], include_in_schema=False)
  async def health():
    return {"status": "healthy", "environment": env.ENVIRONMENT}

  app.include_router(organizations_router)
  app.include_router(subscription_router)
  app.include_router(webhooks_router)
  app.include_router(admin_organizations_router)
  app.include_router(admin_plans_router)

  return app


app = create_app()
