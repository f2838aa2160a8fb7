"""
Exceptions raised by the recommender core.
"""


class RecommenderError(Exception):
    """Base class for recommender failures."""


class ModelLoadError(RecommenderError):
    """The expression detector could not be loaded."""


class CameraError(RecommenderError):
    """The camera could not be opened (missing device or permission denied)."""


class MissingCredentialsError(RecommenderError):
    """No Spotify client credentials have been provided."""


class TokenRequestError(RecommenderError):
    """The client-credentials exchange failed."""

    def __init__(self, status_code: int | None, message: str = ""):
        self.status_code = status_code
        super().__init__(message or f"Token request failed: {status_code}")


class CatalogError(RecommenderError):
    """The catalog search returned an error response."""

    def __init__(self, status_code: int | None, message: str = ""):
        self.status_code = status_code
        super().__init__(message or f"Spotify API error: {status_code}")
