"""Exception hierarchy for deployplan."""


class DeployplanError(Exception):
    """Base exception for all deployplan errors."""


class AnalyzeError(DeployplanError):
    """Repository cannot be analyzed at all (missing path, not a directory)."""


class ArtifactError(DeployplanError):
    """Failed to write plan artifacts."""
