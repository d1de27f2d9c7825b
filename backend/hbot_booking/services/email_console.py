import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ConsoleEmailService:
    """Email service that only logs, used when no real provider is configured."""

    def __init__(self, *_: Any, **__: Any) -> None:
        pass

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        logger.info(f"[console email] to={to_email} subject={subject!r}")
        return {"id": None, "provider": "console"}
