"""Exception types shared by the API, page layer and maintenance scripts."""


class ConfigError(Exception):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class NotFoundError(Exception):
    pass


class IdentityProviderError(Exception):
    """A call to the hosted auth service failed."""


class InvalidTokenError(Exception):
    pass


class AgentValidationError(ValueError):
    pass


class RedirectRequired(Exception):
    """Raised by page guards; turned into a 303 redirect by the app."""

    def __init__(self, target: str):
        super().__init__(target)
        self.target = target


class SellerApplicationError(ValueError):
    pass
