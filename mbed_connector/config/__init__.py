"""Client configuration and logging presets."""

from .app_config import settings, ConnectorConfig, BASE64_CONTENT_TYPES
from .logging_config import configure

__all__ = ['settings', 'ConnectorConfig', 'BASE64_CONTENT_TYPES', 'configure']
