"""
Error hierarchy for node selection.

Usage:
    from errors import NotAvailableError

    try:
        result = manager.select(request, label, gpu_type, pending)
    except NotAvailableError as e:
        logger.info(f"Re-queue task: {e.message}")
"""


class SelectionError(Exception):
    """Base exception for all node selection errors."""
    retryable = False

    def __init__(self, message=""):
        super().__init__(message)
        self.message = message


class NotAvailableError(SelectionError):
    """
    Not enough candidate nodes or free ports for a request right now.

    Callers are expected to re-queue the task and try again in a later round.
    """
    retryable = True


class ConfigurationError(SelectionError):
    """Invalid launcher or cluster configuration."""
