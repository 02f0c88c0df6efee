"""Exception types shared across services."""

from bulk_image_generator.domain.generation import FailureKind


class GenerationFailure(Exception):
    """Classified failure of a single provider call."""

    kind: FailureKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PromptRejectionFailure(GenerationFailure):
    """The provider refused the prompt content itself."""

    kind = FailureKind.PROMPT_REJECTED


class RateLimitFailure(GenerationFailure):
    """The credential ran out of quota or throughput."""

    kind = FailureKind.RATE_LIMITED


class CredentialOrTransportFailure(GenerationFailure):
    """Invalid credential, network error or malformed response."""

    kind = FailureKind.CREDENTIAL_OR_TRANSPORT


class ExhaustionFailure(GenerationFailure):
    """No credential could serve the prompt."""

    kind = FailureKind.EXHAUSTED


class RunPreconditionError(Exception):
    """A run cannot be started with the given input."""


class NoPromptsError(RunPreconditionError):
    def __init__(self) -> None:
        super().__init__("Please enter at least one prompt.")


class NoActiveCredentialsError(RunPreconditionError):
    def __init__(self) -> None:
        super().__init__("Please add at least one active API key.")


class InvalidImageCountError(RunPreconditionError):
    def __init__(self, image_count: int, maximum: int) -> None:
        super().__init__(
            f"Image count must be between 1 and {maximum}, got {image_count}."
        )


class RunInProgressError(Exception):
    """Another run is still active."""


class EmptyArchiveError(Exception):
    """A session holds no images to export."""
