"""Exceptions raised by the intake pipelines and their adapters."""


class FrontdeskError(Exception):
    """Base exception for frontdesk errors."""


class ValidationError(FrontdeskError):
    """Malformed or missing input. Caller-fixable; nothing was persisted."""


class MessageNotFoundError(ValidationError):
    """No message with this id exists for the hotel."""


class CallNotFoundError(ValidationError):
    """No call with this id exists for the hotel."""


class TaskNotFoundError(ValidationError):
    """No task with this id exists for the hotel."""


class TenantResolutionError(FrontdeskError):
    """An inbound event could not be attributed to a hotel."""


class InvalidInputError(FrontdeskError):
    """The classifier was handed text it cannot work with (e.g. empty)."""


class ClassificationUnavailableError(FrontdeskError):
    """The language model was unreachable or returned unusable data."""


class PersistenceError(FrontdeskError):
    """The backing store rejected a read or write."""


class DeliveryError(FrontdeskError):
    """A delivery provider failed to send a message."""
