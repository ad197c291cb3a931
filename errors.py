from typing import Optional


class Redirect(Exception):
    """Send the caller to another page instead of failing.

    Raised for wrong-role access (silently, no notice) and for detail pages
    whose record is gone (with a notice for the toast).
    """

    def __init__(self, url: str, notice: Optional[str] = None) -> None:
        super().__init__(url)
        self.url = url
        self.notice = notice
