"""
Histogram service errors

HistogramServiceError
├── ClientInputError         bad or missing query parameters (400)
├── NotFoundError            unknown comparison set or witness (404)
├── ResourceExhaustionError  admission check failed (507)
├── TaskIOError              render/serialize/cache failure, recorded on the task
└── TaskCanceledError        render canceled, recorded as CANCELED
"""


class HistogramServiceError(Exception):
    """Base class for histogram service errors"""


class ClientInputError(HistogramServiceError):
    """Malformed or missing request parameters"""


class NotFoundError(HistogramServiceError):
    """Referenced comparison set or witness does not exist"""


class ResourceExhaustionError(HistogramServiceError):
    """Rendering would likely exhaust available memory"""

    def __init__(self, estimated_bytes: int, available_bytes: int):
        super().__init__(
            "The server has insufficient resources to generate a histogram for this collation."
        )
        self.estimated_bytes = estimated_bytes
        self.available_bytes = available_bytes


class TaskIOError(HistogramServiceError):
    """Failure while reading differences, serializing or caching a histogram"""


class TaskCanceledError(HistogramServiceError):
    """Raised into a render task when it has been canceled"""
