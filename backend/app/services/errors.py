"""
Service-layer error taxonomy.

Services raise these; app.main maps them to HTTP responses using
`status_code`, so routers never translate them by hand.
"""


class MarketplaceError(Exception):
    """Base class for expected business-rule failures."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    """Bad input or an unknown referenced entity."""
    status_code = 400


class ForbiddenError(MarketplaceError):
    """Wrong role, wrong owner, or an action no longer allowed."""
    status_code = 403


class NotFoundError(MarketplaceError):
    """Missing entity, or one the caller may not see."""
    status_code = 404


class ConflictError(MarketplaceError):
    """The entity is not in a state that allows the action."""
    status_code = 409
