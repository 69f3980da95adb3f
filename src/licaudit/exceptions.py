"""Exception hierarchy for licence audits."""

from __future__ import annotations


class LicauditError(RuntimeError):
    """Base class for errors that abort an audit run."""


class ConfigurationError(LicauditError):
    """The run is misconfigured (licence directory, config values)."""


class LicenceConfigurationError(ConfigurationError):
    """An accepted-licence identifier could not be turned into a hash."""

    def __init__(self, message: str, *, identifier: str | None = None):
        super().__init__(message)
        self.identifier = identifier


class RepositoryAccessError(LicauditError):
    """The git layer failed to answer a question about the history.

    This is never a licensing gap: it means the history is corrupt or
    inaccessible, so the whole run is abandoned.
    """

    def __init__(self, message: str, *, command: list[str] | None = None):
        super().__init__(message)
        self.command = list(command or [])
