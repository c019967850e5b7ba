"""Discard handling for summaries that failed validation."""

from decimal import Decimal

from utils.logger import log_discard


class LoggingDiscardHandler:
    """Writes discarded summaries to the structured log."""

    async def handle_discard(self, summary: Decimal, reason: str) -> None:
        log_discard(summary, reason)
