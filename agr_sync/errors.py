"""Error taxonomy for scraper runs."""


class ScraperError(RuntimeError):
    """Base class for fatal run errors."""


class AuthenticationFailure(ScraperError):
    """Login form still present after submitting credentials."""


class NavigationFailure(ScraperError):
    """A page could not be loaded after exhausting retries."""

    def __init__(self, url: str, message: str = ""):
        self.url = url
        super().__init__(f"Navigation to {url} failed" + (f": {message}" if message else ""))


class RunTimeout(ScraperError):
    """A job exceeded its deadline."""

    def __init__(self, job: str, timeout: float):
        self.job = job
        self.timeout = timeout
        super().__init__(f"[TIMEOUT] {job} exceeded {timeout:.0f}s")


class PersistenceFailure(ScraperError):
    """The store was unreachable or rejected a write."""
