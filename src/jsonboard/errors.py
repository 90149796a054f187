from __future__ import annotations


class DashboardError(Exception):
    """Base for every failure a widget can settle into."""

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.__class__.__name__


class FetchError(DashboardError):
    pass


class NetworkError(FetchError):
    pass


class HttpError(FetchError):
    def __init__(self, status: int, message: str | None = None):
        super().__init__(message or f"API Error: {status}")
        self.status = status


class RateLimited(HttpError):
    def __init__(self, status: int = 429, message: str | None = None):
        super().__init__(status, message or "Rate limit exceeded. Try again later.")


class Unauthorized(HttpError):
    def __init__(self, status: int = 401, message: str | None = None):
        super().__init__(status, message or "Invalid API key or unauthorized.")


class DecodeError(FetchError):
    pass


class UnresolvableSeries(DashboardError):
    def __init__(self, path: str):
        super().__init__(f"Could not find chart data at {path!r}. Check field selection.")
        self.path = path


class MissingEndpoint(DashboardError):
    def __init__(self) -> None:
        super().__init__("No API URL provided")
