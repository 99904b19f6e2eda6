from typing import Optional


class DashboardError(Exception):
    pass


class MissingCredential(DashboardError):
    """No session token is stored; the user has to log in again."""

    def __init__(self, resource: str):
        self.resource = resource
        self.message = "No token found"
        super().__init__(f"{resource}: {self.message}")


class FetchError(DashboardError):
    def __init__(self, resource: str, message: str, status: Optional[int] = None):
        self.resource = resource
        self.message = message
        self.status = status
        super().__init__(f"{resource}: {message}")


class MutationError(DashboardError):
    def __init__(self, action: str, message: str, status: Optional[int] = None):
        self.action = action
        self.message = message
        self.status = status
        super().__init__(f"{action}: {message}")
