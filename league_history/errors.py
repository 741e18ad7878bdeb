from typing import Optional


class UpstreamUnavailable(Exception):
    """An upstream provider (Sleeper or FantasyCalc) failed or timed out."""

    def __init__(self, url: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        self.url = url
        self.status_code = status_code
        self.detail = detail
        message = f"Upstream request failed: {url}"
        if status_code is not None:
            message += f" (status {status_code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
