"""Custom exceptions for the gmaps-scraper library."""


class GMapsScraperError(Exception):
    """Base exception for all gmaps-scraper errors."""
    pass


class ConfigurationError(GMapsScraperError):
    """Raised when a search request or configuration is invalid."""
    pass


class GeocodeError(GMapsScraperError):
    """Raised when a location cannot be resolved to coordinates."""
    pass


class BrowserError(GMapsScraperError):
    """Raised when the browser cannot be launched or a context cannot be created."""
    pass


class PageUnavailableError(GMapsScraperError):
    """Raised when a page is closed or navigated away during extraction."""
    pass


class NavigationTimeoutError(GMapsScraperError):
    """Raised when a page visit exceeds its time budget."""
    pass
