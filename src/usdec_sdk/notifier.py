"""User notifications for the mint/redeem flow."""

import logging
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

NotifyKind = Literal["success", "info", "error"]


class Notifier(Protocol):
    """Surfaces outcomes to the user (toast, log line, chat message...).

    Implementations must return promptly; the orchestrator does not wait on
    them and ignores their failures.
    """

    def notify(self, kind: NotifyKind, message: str) -> None:
        ...


class LoggingNotifier:
    """Notifier that writes to the ``usdec_sdk.notifier`` logger."""

    def notify(self, kind: NotifyKind, message: str) -> None:
        if kind == "error":
            logger.error(message)
        else:
            logger.info(message)
