class UpstreamError(Exception):
    """Raised when Steam or OpenDota cannot answer a request."""

    def __init__(self, service: str, message: str, status_code: int = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")


class CorruptStoreError(Exception):
    """Raised when a data file cannot be decoded and must not be overwritten."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Could not decode JSON from {path}: {reason}")
