import logging

LOG_FORMAT_DEBUG = "%(levelname)s:%(message)s:%(pathname)s:%(funcName)s:%(lineno)d"
LOG_FORMAT_STANDARD = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

VALID_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def configure_logging(log_level: str = "INFO"):
    """Configure root logging for the service"""
    log_level = str(log_level).upper()

    if log_level not in VALID_LEVELS:
        log_level = "INFO"

    level = getattr(logging, log_level, logging.INFO)

    # Debug runs get call-site details, everything else the compact format
    log_format = LOG_FORMAT_DEBUG if log_level == "DEBUG" else LOG_FORMAT_STANDARD
    logging.basicConfig(level=level, format=log_format, force=True)

    # httpx logs every request at INFO; keep it to warnings unless debugging
    if log_level != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level: {log_level}")
