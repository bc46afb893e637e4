import json

from src.shared.domain.exception.device_exceptions import (
    DeviceConflictError,
    DeviceNotFoundError,
    DeviceValidationError,
    KVTransportError,
)
from src.shared.mappers.response_mapper import create_success_response, handle_error


def body_of(response):
    return json.loads(response.body)


class TestResponseMapper:
    def test_success_envelope(self):
        response = create_success_response({"devices": [], "count": 0}, "all_devices")

        body = body_of(response)
        assert response.status_code == 200
        assert body["success"] is True
        assert body["type"] == "all_devices"
        assert body["timestamp"].endswith("Z")
        assert body["count"] == 0

    def test_validation_error_keeps_details(self):
        details = [{"path": "value.deviceId", "message": "bad"}]

        response = handle_error(DeviceValidationError(details=details), "创建设备")

        assert response.status_code == 400
        assert body_of(response) == {"error": "数据验证失败", "details": details}

    def test_not_found_and_conflict(self):
        not_found = handle_error(DeviceNotFoundError("UNKNOWNID"), "删除设备")
        conflict = handle_error(DeviceConflictError("AABBCCDDEEFF"), "创建设备")

        assert not_found.status_code == 404
        assert body_of(not_found) == {"error": "设备不存在"}
        assert conflict.status_code == 409
        assert body_of(conflict) == {"error": "设备已存在，请使用PUT方法更新"}

    def test_unexpected_error_names_operation(self):
        response = handle_error(KVTransportError("HTTP 503: unavailable", status=503), "获取设备数据")

        assert response.status_code == 500
        assert body_of(response) == {"error": "获取设备数据失败", "details": "HTTP 503: unavailable"}

    def test_plain_exception(self):
        response = handle_error(RuntimeError(), "更新设备")

        assert response.status_code == 500
        assert body_of(response)["details"] == "RuntimeError"
