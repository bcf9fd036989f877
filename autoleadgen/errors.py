"""Error taxonomy shared by the pipelines.

Every error carries a machine-checkable ``category`` and a human-readable
message; most also carry a recovery hint that callers may surface verbatim.
"""

from typing import Optional

INPUT = "input"
AUTOMATION = "automation"
NETWORK = "network"
AUTH = "auth"


class AutoleadgenError(Exception):
    category = AUTOMATION
    recovery: Optional[str] = None

    def __init__(self, message: str, recovery: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if recovery is not None:
            self.recovery = recovery

    def to_dict(self) -> dict:
        return {"category": self.category, "message": self.message, "recovery": self.recovery}


# -- input -------------------------------------------------------------------

class InvalidURLError(AutoleadgenError):
    category = INPUT
    recovery = "Ensure the LinkedIn URL is in the format: https://www.linkedin.com/in/username"

    def __init__(self, url: str):
        super().__init__(f"Invalid LinkedIn URL: {url}")
        self.url = url


class InvalidFileFormatError(AutoleadgenError):
    category = INPUT
    recovery = "Ensure the file is a valid CSV with columns: firstName, lastName, profileURL, message"


class FileNotFound(AutoleadgenError):
    category = INPUT
    recovery = "Please check the file path and try again."

    def __init__(self, path: str):
        super().__init__(f"File not found: {path}")
        self.path = path


class InvalidPageURLError(AutoleadgenError):
    category = INPUT
    recovery = "Use a full http(s) link to the post or article."

    def __init__(self, url: str):
        super().__init__(f"Invalid URL provided: {url}")
        self.url = url


# -- automation --------------------------------------------------------------

class ElementNotFoundError(AutoleadgenError):
    recovery = "The LinkedIn page structure may have changed. Try refreshing the page."

    def __init__(self, element: str):
        super().__init__(f"Element not found: {element}")
        self.element = element


class AutomationTimeout(AutoleadgenError):
    recovery = "The operation took too long. Check your internet connection and try again."


class MessageSendFailed(AutoleadgenError):
    recovery = "Could not send the message. The contact may have messaging restrictions."


class EmptyMessageError(AutoleadgenError):
    recovery = "Provide a message template, a pre-filled message or enable AI generation."


class CouldNotOpenModal(ElementNotFoundError):
    pass


class ContentParseError(AutoleadgenError):
    recovery = "The page may still be loading or its layout is not supported."

    def __init__(self, message: str = "Failed to parse page content"):
        super().__init__(message)


class DriverDisconnected(AutoleadgenError):
    """Raised by page drivers when the browsing session is gone. Fatal to a run."""

    recovery = "Reopen the browser session and start again."


# -- auth --------------------------------------------------------------------

class NotLoggedInError(AutoleadgenError):
    category = AUTH
    recovery = "Please log in to LinkedIn in the browser before starting automation."

    def __init__(self, message: str = "Not logged in to LinkedIn"):
        super().__init__(message)
