import os

# Settings are read once on first import; keep the limiter out of the way of API tests
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "development")
