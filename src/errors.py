"""Exception taxonomy for package cost resolution."""


class CostError(Exception):
    """Base exception for all package cost operations."""


class InvalidRequest(CostError):
    """Raised when a package identifier is missing or malformed."""


class NotFound(CostError):
    """Raised when the metadata store has no record for a package."""


class ArchiveCorrupt(CostError):
    """Raised when an archive cannot be decompressed or iterated."""


class RegistryLookupFailure(CostError):
    """Raised when registry metadata cannot be fetched or decoded."""


class NetworkFailure(CostError):
    """Raised when a transport error interrupts an outbound request."""


class StoreError(CostError):
    """Raised when the metadata or artifact store fails a lookup."""


class TraversalLimitExceeded(CostError):
    """Raised under the strict policy when a traversal ceiling is hit."""


class ConfigurationError(CostError):
    """Raised when configuration validation fails."""
