"""
Failure classification for pipeline steps.

The first failure of a run is shown with its specific message. Any failure
on a consecutive attempt of the same run is downgraded to a generic
message so upstream error text is not surfaced repeatedly.
"""

from app.services.stages.base import StageError

GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again later."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class FailureClassifier:
    """
    Tracks consecutive failures for one run and maps errors to messages.

    Example:
        classifier = FailureClassifier()
        classifier.message_for(StageError("fetch", "No captions"))  # "No captions"
        classifier.record_retry()
        classifier.message_for(StageError("fetch", "No captions"))  # generic
    """

    def __init__(self) -> None:
        self.failure_count = 0

    @property
    def is_second_failure(self) -> bool:
        """True once a retry has been attempted for this run."""
        return self.failure_count >= 1

    def record_retry(self) -> None:
        """Count a retry after a failure."""
        self.failure_count += 1

    def reset(self) -> None:
        self.failure_count = 0

    def message_for(self, error: BaseException) -> str:
        """
        User-facing message for a stage failure.

        Args:
            error: StageError (returned failure) or any exception a stage raised

        Returns:
            Specific message on first failure, generic message afterwards
        """
        if self.is_second_failure:
            return GENERIC_FAILURE_MESSAGE
        return describe_error(error)


def describe_error(error: BaseException) -> str:
    """Specific message for an error, without classification."""
    if isinstance(error, StageError):
        return error.message
    return str(error) or UNEXPECTED_ERROR_MESSAGE
