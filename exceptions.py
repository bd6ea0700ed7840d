"""
Exceptions for the workout route simulator
"""


class RunnersRouteError(Exception):
    """Base class for all errors raised by this package"""


class InvalidCourseDefinition(RunnersRouteError, ValueError):
    """A course has a malformed path or pace segments"""


class SimulationStateError(RunnersRouteError):
    """An operation is not allowed in the controller's current state"""


class GeolocationUnavailable(RunnersRouteError):
    """The location collaborator has no sample for this tick"""


class ProviderError(RunnersRouteError):
    """
    A routing provider could not produce a route.

    Recoverable errors let the resolver try the next provider, all others
    send it straight to the straight-line fallback.
    """
    recoverable = False

    def __init__(self, provider: str, message: str = ""):
        self.provider = provider
        super().__init__(f"{provider}: {message}" if message else provider)


class ZeroResultRoute(ProviderError):
    """The provider answered but found no route"""
    recoverable = True


class ProviderTimeout(ProviderError):
    """The provider did not answer within the timeout"""
    recoverable = True


class ProviderUnavailable(ProviderError):
    """Missing or invalid credentials, exceeded quota or a service error"""
