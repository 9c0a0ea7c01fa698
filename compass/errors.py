class CompassError(Exception):
    """Base class for failures raised by the compass package."""


class StoreError(CompassError):
    """A stored finance document could not be read or written."""


class AdvisorError(CompassError):
    """The financial plan backend could not be reached or refused the request."""


class PlanFormatError(AdvisorError):
    """The backend answered with a plan that does not match the plan schema."""
