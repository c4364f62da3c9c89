# errors.py

from __future__ import annotations

from typing import Optional


class ContractScanError(RuntimeError):
    """Base class for every failure surfaced to the user as a message."""


# -----------------------
# Configuration
# -----------------------

class ConfigurationError(ContractScanError):
    """Missing or implausible API credential. Raised before any network call."""


# -----------------------
# Document ingestion
# -----------------------

class ExtractionError(ContractScanError):
    """PDF could not be decoded, is encrypted, or carries no text layer."""


class LibraryNotReadyError(ContractScanError):
    """PDF backend was used before it finished initialising."""


# -----------------------
# Remote analysis
# -----------------------

class AnalysisError(ContractScanError):
    """Non-success exchange with the analysis service."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimited(AnalysisError):
    pass


class EndpointNotFound(AnalysisError):
    pass


class Unauthorized(AnalysisError):
    pass


class GenericServiceError(AnalysisError):
    pass
