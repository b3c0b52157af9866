import logging

from settings.config import get_settings

logger = logging.getLogger("catalog_app")
logger.setLevel(get_settings().log_level.upper())
