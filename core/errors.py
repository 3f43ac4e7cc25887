# =============================================================================
# core/errors.py  -  Exception hierarchy
# =============================================================================
#
# Three kinds of failure exist in this project:
#   1. Startup configuration problems (ConfigError)  -> fatal, exit 1
#   2. Driver / validation failures inside one tool   -> reported as text
#   3. Identifier coercion failures                   -> silent, unless the
#      gateway runs in strict mode (InvalidObjectIdError)
# =============================================================================


class GatewayError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(GatewayError):
    """A required setting is missing or malformed."""


class NotConnectedError(GatewayError):
    """MongoService was used before connect() or after disconnect()."""

    def __init__(self, message: str = "Not connected to MongoDB"):
        super().__init__(message)


class InvalidObjectIdError(GatewayError, ValueError):
    """An ``_id`` string is not a valid ObjectId (strict mode only)."""

    def __init__(self, value: str):
        super().__init__(f"'{value}' is not a valid ObjectId")
        self.value = value
