"""Resource-acquisition failures reported by the session controller."""


class ResourceAcquisitionError(Exception):
    """Camera or detector could not be acquired. Recoverable by retrying."""

    kind = "resource"

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class CameraError(ResourceAcquisitionError):
    """Camera permission denied, device missing, or stream unreadable."""

    kind = "camera"


class DetectorError(ResourceAcquisitionError):
    """Hand detector model could not be fetched or initialized."""

    kind = "detector"
