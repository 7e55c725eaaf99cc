"""
Exceptions raised by the NTP clock sync tool.
"""


class NtpSyncError(Exception):
    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f"{self.__class__.__name__}: {self.message}"


class NetworkError(NtpSyncError):
    pass


class ProtocolError(NetworkError):
    """The server answered, but not with a usable NTP response."""


class FormatError(NtpSyncError):
    pass


class ClockSetError(NtpSyncError):
    pass
