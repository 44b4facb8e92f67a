from __future__ import annotations


class StackGitError(Exception):
    """Root of the stackgit exception hierarchy.

    Every error raised deliberately by stackgit derives from this class, so
    callers can catch library failures at one boundary while letting
    programming errors propagate.

    Attributes:
        message: Human-readable error message.

    Example:
        ```python
        try:
            client.push_branch("topic")
        except StackGitError as e:
            logger.error("push_failed", error=e.message)
        ```
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
