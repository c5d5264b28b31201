from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from .api import register_routes
from .logging import configure_logging
from .config import get_settings
from .middleware.logging import RequestLoggingMiddleware
from .rate_limiter import limiter, rate_limit_error_handler
from .sentry import init_sentry

settings = get_settings()

configure_logging(settings.app.log_level)
init_sentry()

app = FastAPI(title="learnpath")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_error_handler)

app.add_middleware(RequestLoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_routes(app)


@app.get("/health")
async def health():
    return {"status": "healthy"}
