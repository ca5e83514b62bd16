"""
Error taxonomy shared by the command console, the gateway and the API layer.

  InvalidInput         -> 400 (top-level request problems)
  NotFound             -> 404 (management endpoints only; in-band for tools)
  UpstreamUnavailable  -> 500 (text generation or data store failed)
  Unauthorized         -> 401
"""


class SpeedSalesError(Exception):
    """Base class for errors the API maps to a status code."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(SpeedSalesError):
    status_code = 400


class NotFound(SpeedSalesError):
    status_code = 404


class UpstreamUnavailable(SpeedSalesError):
    status_code = 500


class Unauthorized(SpeedSalesError):
    status_code = 401
