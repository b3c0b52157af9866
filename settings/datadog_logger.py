import logging
import os
import json
import requests

from settings.config import get_settings

# =========================
# Datadog Configuration
# =========================

DATADOG_LOG_URL = "https://http-intake.logs.datadoghq.com/v1/input"

# ONLY exclude very noisy internals
EXCLUDED_LOGGERS = {
    "multipart",
    "httpcore",
    "openai._base_client",
}

# Optional allowlist (comma-separated logger prefixes)
# Example: DD_INCLUDE_LOGGERS=catalog_app,services
INCLUDE_LOGGERS = (
    os.getenv("DD_INCLUDE_LOGGERS").split(",")
    if os.getenv("DD_INCLUDE_LOGGERS")
    else None
)

# Structured attributes copied from `extra=` into the payload
STRUCTURED_FIELDS = (
    "http.method",
    "http.url",
    "http.status_code",
    "duration_ms",
    "event_type",
    "tenant_id",
    "actor_id",
)


class DatadogLogger(logging.Handler):
    def __init__(self, service: str, api_key: str = None):
        super().__init__()
        self.service = service
        self.env = get_settings().environment
        self.api_key = api_key if api_key is not None else get_settings().datadog_api_key
        self.setFormatter(logging.Formatter("%(message)s"))

    def should_log(self, record: logging.LogRecord) -> bool:
        """
        Decide whether to send this log to Datadog.
        """
        logger_name = record.name

        if INCLUDE_LOGGERS:
            return any(
                logger_name.startswith(prefix.strip())
                for prefix in INCLUDE_LOGGERS
                if prefix.strip()
            )

        for excluded in EXCLUDED_LOGGERS:
            if logger_name.startswith(excluded):
                return False
        return True

    def build_payload(self, record: logging.LogRecord) -> dict:
        payload = {
            "message": record.getMessage(),
            "ddsource": "python",
            "service": self.service,
            "hostname": os.getenv("HOSTNAME"),
            "status": record.levelname.lower(),
            "logger": record.name,
        }
        tags = [f"env:{self.env}", f"service:{self.service}"]
        for attr in STRUCTURED_FIELDS:
            value = getattr(record, attr, None)
            if value is None:
                continue
            payload[attr] = value
            if attr in ("http.method", "http.status_code", "event_type"):
                tags.append(f"{attr}:{str(value).lower()}")
        payload["ddtags"] = ",".join(tags)
        return payload

    def emit(self, record: logging.LogRecord):
        if not self.api_key:
            return

        try:
            if not self.should_log(record):
                return

            headers = {
                "Content-Type": "application/json",
                "DD-API-KEY": self.api_key,
            }
            requests.post(
                DATADOG_LOG_URL,
                headers=headers,
                data=json.dumps(self.build_payload(record), default=str),
                timeout=2,
            )
        except Exception:
            self.handleError(record)
