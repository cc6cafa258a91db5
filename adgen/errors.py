"""
Error taxonomy for the production pipeline.

Every stage raises a PipelineError subclass so the orchestrator and the
HTTP routes can tell failures apart without string matching.
"""

from typing import Optional


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    default_code = "PIPELINE_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(self.message)


class CredentialMissingError(PipelineError):
    """No API key configured for the service a stage needs."""
    default_code = "CREDENTIAL_MISSING"


class TransportError(PipelineError):
    """Network failure or non-success response from a hosted service."""
    default_code = "TRANSPORT_ERROR"


class ParseError(PipelineError):
    """Reasoning service returned text that is not valid JSON."""
    default_code = "PARSE_ERROR"


class SchemaViolationError(PipelineError):
    """Well-formed JSON that is missing required structure."""
    default_code = "SCHEMA_VIOLATION"


class UnsupportedModelError(PipelineError):
    """No configured provider path for the requested model."""
    default_code = "UNSUPPORTED_MODEL"


class RenderTimeoutError(PipelineError):
    """Render polling budget exhausted before the job completed."""
    default_code = "RENDER_TIMEOUT"


class FetchError(PipelineError):
    """Finished video asset could not be retrieved."""
    default_code = "FETCH_ERROR"


class AssemblyError(PipelineError):
    """Master output could not be assembled."""
    default_code = "ASSEMBLY_ERROR"


class InvalidStateError(PipelineError):
    """Action not allowed in the orchestrator's current state."""
    default_code = "INVALID_STATE"


class ProductionCancelledError(PipelineError):
    """A running production was cancelled by the user."""
    default_code = "CANCELLED"


__all__ = [
    "PipelineError",
    "CredentialMissingError",
    "TransportError",
    "ParseError",
    "SchemaViolationError",
    "UnsupportedModelError",
    "RenderTimeoutError",
    "FetchError",
    "AssemblyError",
    "InvalidStateError",
    "ProductionCancelledError",
]
