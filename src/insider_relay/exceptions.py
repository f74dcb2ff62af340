# src/insider_relay/exceptions.py

class RelayException(Exception):
    """Base exception for the relay application."""
    pass

class ConfigurationError(RelayException):
    """Error related to configuration loading or validation."""
    pass

class NetworkError(RelayException):
    """Error related to network operations (e.g., connection, timeout)."""
    def __init__(self, message, url=None):
        super().__init__(message)
        self.url = url

class HTTPError(NetworkError):
    """Error specific to HTTP responses from the data source (non-2xx status codes)."""
    def __init__(self, message, status_code=None, url=None):
        super().__init__(message, url=url)
        self.status_code = status_code

    def __str__(self):
        return f"{super().__str__()} (Status: {self.status_code}, URL: {self.url})"


class ParsingError(RelayException):
    """Error encountered when the source markup cannot be parsed at all."""
    pass

class LedgerError(RelayException):
    """Error writing to the dedup ledger."""
    pass

class SinkError(RelayException):
    """The notification sink rejected a request."""
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self):
        if self.status_code is None:
            return super().__str__()
        return f"{super().__str__()} (Status: {self.status_code})"

class RateLimitError(SinkError):
    """The sink throttled the request (HTTP 429)."""
    def __init__(self, message, retry_after=None):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after

class RetryExhaustedError(SinkError):
    """The sink kept throttling past the retry ceiling."""
    def __init__(self, message, attempts=None):
        super().__init__(message, status_code=429)
        self.attempts = attempts
