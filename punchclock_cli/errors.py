UNKNOWN_ERROR_MESSAGE = 'Unknown error occurred'


class PunchclockCliException(Exception):
    pass


class PunchclockCliDiscoveryException(PunchclockCliException):
    pass


class PunchclockCliFetchException(PunchclockCliException):
    pass


class PunchclockCliNoDeviceSelectedException(PunchclockCliException):
    def __init__(self, message='Please select a device first'):
        super().__init__(message)


class PunchclockCliValidationException(PunchclockCliException):
    pass


class PunchclockCliSyncNotImplementedException(PunchclockCliException):
    def __init__(self, message='Sync functionality will be implemented soon'):
        super().__init__(message)


class PunchclockCliCommandFailedException(PunchclockCliException):
    pass


class PunchclockCliInvalidArgumentException(PunchclockCliException):
    pass


def error_to_message(error: BaseException) -> str:
    return str(error) or UNKNOWN_ERROR_MESSAGE
