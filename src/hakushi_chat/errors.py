"""
Hakushi chat error types.

Only transport lifecycle errors move the session state machine; everything
else is raised to the caller or recorded as the session's last error.
"""

from typing import Any, Optional


class HakushiError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class InvalidAddressError(HakushiError):
    """Room / base URL combination cannot form a WebSocket address."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("invalid_address", message, details)


class TransportReceiveError(HakushiError):
    def __init__(self, message: str):
        super().__init__("transport_receive_failure", message)


class DecodeError(HakushiError):
    def __init__(self, message: str):
        super().__init__("decode_error", message)


class SendError(HakushiError):
    def __init__(self, message: str):
        super().__init__("send_failure", message)


class UploadFailedError(HakushiError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("upload_failed", message, details)


class AttachmentNotReachableError(HakushiError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("attachment_not_reachable", message, details)
