"""licaudit package root."""

from licaudit.exceptions import (
    ConfigurationError,
    LicauditError,
    LicenceConfigurationError,
    RepositoryAccessError,
)

__all__ = [
    "__version__",
    "ConfigurationError",
    "LicauditError",
    "LicenceConfigurationError",
    "RepositoryAccessError",
]

__version__ = "0.1.0"
