class PyHAEntitiesError(Exception):
    """Base class for all pyhaentities errors.

    kind        = machine readable error kind (exposed in the X-Error-Kind header)
    http_status = status code used by the admin server for this error
    """
    kind = "internal"
    http_status = 500

    def __init__(self, message="", http_status=None):
        super().__init__(message)
        if http_status is not None:
            self.http_status = http_status


class HAConnectionError(PyHAEntitiesError, ConnectionError):
    kind = "connection"


class ProtocolError(PyHAEntitiesError):
    kind = "protocol"


class AuthError(PyHAEntitiesError):
    kind = "auth"


class CommandError(PyHAEntitiesError):
    kind = "command"


class ConfigurationError(PyHAEntitiesError):
    kind = "configuration"
    http_status = 400


class HATimeoutError(PyHAEntitiesError, TimeoutError):
    kind = "timeout"


class CallCancelledError(PyHAEntitiesError):
    kind = "cancelled"


class NotFoundError(PyHAEntitiesError):
    kind = "not_found"
    http_status = 404
