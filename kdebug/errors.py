"""Error taxonomy for kdebug sessions.

Every failure the CLI reports derives from KdebugError. The ``label`` class
attribute is the short error class shown to the user ahead of the message.
"""


class KdebugError(Exception):
    label = "error"


class ValidationError(KdebugError):
    label = "invalid arguments"


class ConfigurationError(KdebugError):
    label = "configuration failure"


class ResolutionError(KdebugError):
    label = "resolution failure"


class TransformError(KdebugError):
    label = "pod spec failure"


class ContainerNotFound(TransformError):
    def __init__(self, selector: str):
        super().__init__(f"could not find container '{selector}' within pod spec")
        self.selector = selector


class SchedulingError(KdebugError):
    label = "scheduling failure"


class PodStartFailed(KdebugError):
    label = "pod start failure"


class UnexpectedEvent(PodStartFailed):
    label = "unexpected watch event"

    def __init__(self, event_type: str):
        super().__init__(f"unexpected event {event_type!r} while waiting for pod")
        self.event_type = event_type


class StreamError(KdebugError):
    label = "stream failure"


class TeardownWarning(KdebugError):
    """A cleanup step failed. Recorded on the session and printed, never raised."""

    label = "teardown warning"
