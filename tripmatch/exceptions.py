"""
Error taxonomy for the trip generation pipeline.
"""
from __future__ import annotations


class TripPipelineError(Exception):
    """
    Base class for failures that abort a trip generation request.

    Attributes:
        message (str): Human-readable error message
        status_code (int): HTTP status code to return
        error_code (str): Machine-readable kind so clients can tell failures apart
        raw_text (str, optional): Raw model output kept for diagnosis
    """

    status_code = 500
    error_code = "pipeline_error"

    def __init__(
        self,
        message: str,
        *,
        raw_text: str | None = None,
        status_code: int | None = None,
        error_code: str | None = None,
    ):
        self.message = message
        self.raw_text = raw_text
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        super().__init__(self.message)


class UpstreamTimeout(TripPipelineError):
    """The text-generation call exceeded its time bound."""

    status_code = 504
    error_code = "upstream_timeout"


class UpstreamUnavailable(TripPipelineError):
    """No text-generation provider is configured, or the provider call failed."""

    status_code = 503
    error_code = "upstream_unavailable"


class NoTextualOutput(TripPipelineError):
    status_code = 502
    error_code = "no_textual_output"


class ExtractionFailure(TripPipelineError):
    """No parseable JSON object could be recovered from the model output."""

    status_code = 502
    error_code = "json_parse_failure"


class SchemaEcho(TripPipelineError):
    """JSON was parsed but it describes the schema instead of carrying trips."""

    status_code = 502
    error_code = "schema_echo"
