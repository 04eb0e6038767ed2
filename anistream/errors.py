class ScraperError(Exception):
    """Base class for failures talking to or reading a third-party source."""


class TransientNetworkFailure(ScraperError):
    """Timeout, connection error or non-2xx status from an upstream site."""


class ParseFailure(ScraperError):
    """The upstream markup or JSON no longer has the expected shape."""


class MalformedToken(ParseFailure):
    """The obfuscated kwik script could not be turned into a playlist URL."""
