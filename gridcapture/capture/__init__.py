from gridcapture.capture.interceptor import CaptureInterceptor, parse_context_ids
from gridcapture.capture.models import CaptureEvent, ContextIds, PaginationHeaders
from gridcapture.capture.transport import InterceptingTransport

__all__ = [
    "CaptureEvent",
    "CaptureInterceptor",
    "ContextIds",
    "InterceptingTransport",
    "PaginationHeaders",
    "parse_context_ids",
]
