"""
Repository for the localized content blob (content.json)
"""

import structlog

from exceptions import ValidationException

logger = structlog.get_logger("main")


class ContentRepository:
    def __init__(self, document):
        self.document = document

    def get(self):
        return self.document.get()

    def replace(self, content):
        """Overwrite the whole document. Locales missing from content are dropped."""
        if not isinstance(content, dict):
            raise ValidationException("Content must be a JSON object keyed by locale")
        with self.document.lock:
            self.document.write(content)
        logger.info(f"Content replaced (locales: {', '.join(sorted(content)) or 'none'})")
