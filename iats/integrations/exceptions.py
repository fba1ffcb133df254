class ServiceUnavailable(Exception):
    """iATS service is not reachable"""


class ServiceErrorException(Exception):
    """iATS service returned a SOAP fault"""

    def __init__(self, *args: object, response=None) -> None:
        super().__init__(*args)
        self.response = response


class RejectRequestException(Exception):
    """Request was answered with a failure result"""

    def __init__(self, failure, *args: object) -> None:
        self.failure = failure
        message = getattr(failure, 'message', failure)
        super().__init__(message, *args)
