# NEARBY/core/logger
import logging

from NEARBY.core.config import LOG_LEVEL, CLOUD_LOGGING


def setup_logging():
    """
    Console logging for every process; Google Cloud Logging on top when
    NEARBY_CLOUD_LOGGING=1 (Cloud Run / GKE deployments).
    """
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if CLOUD_LOGGING:
        import google.cloud.logging

        client = google.cloud.logging.Client()
        client.setup_logging()
        logging.getLogger("core.logger").info("Cloud logging enabled")


def log_to_cloud(category: str, severity: str, message: str, metadata: dict = None):
    logging.log(
        getattr(logging, severity.upper(), logging.INFO),
        f"[{category}] {message}",
        extra={"metadata": metadata or {}}
    )
