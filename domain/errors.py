"""Error taxonomy for the strategy recommendation pipeline."""


class StrategyServiceError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(StrategyServiceError):
    """Input rejected before any state changed."""


class UnknownWeightError(ValidationError):
    """Weight key is not one of the seeded parameters."""


class NotFoundError(StrategyServiceError):
    """Requested record does not exist."""


class AlreadyAppliedError(StrategyServiceError):
    """Strategy has already been applied."""

    def __init__(self, strategy_id: int, applied_by: str = None):
        self.strategy_id = strategy_id
        self.applied_by = applied_by
        super().__init__(
            f"Strategy {strategy_id} was already applied"
            + (f" by {applied_by}" if applied_by else "")
        )


class EmptyInputError(StrategyServiceError):
    """No activities to build a prompt from."""


class GenerationInProgressError(StrategyServiceError):
    """A generation for the same requester is already running."""


class RecommendationClientError(StrategyServiceError):
    """Base class for failures talking to the model service."""


class AuthenticationError(RecommendationClientError):
    """Model credential is missing or was rejected."""


class ModelTimeoutError(RecommendationClientError):
    """Model service did not answer within the configured timeout."""


class UpstreamError(RecommendationClientError):
    """Model service answered with an error or a malformed envelope."""

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)


class UnparsableResponseError(StrategyServiceError):
    """Model output contained no usable strategy."""

    def __init__(self, reason: str, raw_text: str = ""):
        self.reason = reason
        self.raw_text = raw_text
        super().__init__(f"Unparsable model response: {reason}")
