"""Exception hierarchy for the importer pipeline."""
from typing import Optional


class ImporterError(RuntimeError):
    """Base class for every failure the import pipeline reports to the user."""


class ConfigurationError(ImporterError):
    """Raised when required API keys are missing or the config file cannot be written."""


class DocumentError(ImporterError):
    """Raised when an input document cannot be read or is not a supported type."""


class ExtractionError(ImporterError):
    """Raised when the extraction service cannot produce a usable workout program."""


class ExtractionParseError(ExtractionError):
    """The extraction result is not valid JSON matching the workout program schema."""


class ExtractionPipelineError(ExtractionError):
    """The remote pipeline reported a failed execution."""


class ExtractionTimeout(ExtractionError):
    """The remote pipeline did not finish within the polling ceiling."""


class HttpFailure(ImporterError):
    """Non-success HTTP response from the Hevy API."""

    def __init__(self, status_code: Optional[int], body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Hevy API error ({status_code}): {body}")


class CatalogError(HttpFailure):
    """Raised when fetching the exercise template catalog fails."""


class DestinationError(HttpFailure):
    """Raised when creating a routine folder or routine fails."""


class AssemblyError(ImporterError):
    """Raised when a workout references an exercise with no matched template."""

    def __init__(self, exercise_name: str):
        self.exercise_name = exercise_name
        super().__init__(f"No template found for exercise: {exercise_name}")
