from typing import Dict, List, Optional


class DeviceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DeviceValidationError(DeviceError):
    """Schema or request-shape violation. Always client-caused."""

    status_code = 400

    def __init__(self, message: str = "数据验证失败", details: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.details = details or []


class MalformedRecordError(DeviceValidationError):
    """A stored value is not JSON or does not satisfy the Device schema."""

    def __init__(self, key: str, details: Optional[List[Dict[str, str]]] = None, reason: Optional[str] = None):
        super().__init__("设备数据格式无效", details)
        self.key = key
        self.reason = reason


class DeviceNotFoundError(DeviceError):
    status_code = 404

    def __init__(self, key: str, message: str = "设备不存在"):
        super().__init__(message)
        self.key = key


class DeviceConflictError(DeviceError):
    status_code = 409

    def __init__(self, key: str, message: str = "设备已存在，请使用PUT方法更新"):
        super().__init__(message)
        self.key = key


class TransportError(DeviceError):
    """A downstream HTTP service could not be reached or answered with an error."""

    def __init__(self, service: str, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.service = service
        self.status = status


class KVTransportError(TransportError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__("cloudflare_kv", message, status)


class NotificationDeliveryError(TransportError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__("dot_text_api", message, status)
