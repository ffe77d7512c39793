class EssayHallError(Exception):
    """Base error for all user-facing essayhall exceptions."""


class ConfigurationError(EssayHallError):
    """Raised when configuration is invalid or incomplete."""


class ProjectNotInitializedError(EssayHallError):
    """Raised when the .essayhall data directory or database is missing."""


class ArchiveFetchError(EssayHallError):
    """Raised when the archive source table cannot be fetched."""


class ArchiveResetError(EssayHallError):
    """Raised when the catalog and flag stores cannot be cleared together."""


class CatalogStoreError(EssayHallError):
    """Raised when catalog store operations fail."""


class FlagError(EssayHallError):
    """Raised when flag operations fail."""


class QueryError(EssayHallError):
    """Raised when a query specification is invalid."""
