import pytest

from src.shared.domain.exception.device_exceptions import DeviceValidationError
from src.shared.domain.models.device_models import UpdateDeviceContentRequest, UpdateDeviceRequest
from src.shared.mappers.device_request_mapper import (
    classify_update_request,
    decode_json_body,
    parse_create_request,
    parse_owner_query,
)
from tests.factories import OWNER_KEY, make_device_data


class TestDeviceRequestMapper:
    def test_decode_json_body(self):
        assert decode_json_body(b'{"key": "x"}') == {"key": "x"}

    def test_decode_json_body_rejects_invalid_json(self):
        with pytest.raises(DeviceValidationError) as exc_info:
            decode_json_body(b"{oops")

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "请求体不是有效的JSON"

    def test_decode_json_body_rejects_non_object(self):
        with pytest.raises(DeviceValidationError):
            decode_json_body(b"[1, 2]")

    def test_parse_create_request(self):
        request = parse_create_request({"key": "AABBCCDDEEFF", "value": make_device_data(), "ttl": 600})

        assert request.value.device_id == "AABBCCDDEEFF"
        assert request.ttl == 600

    def test_parse_create_request_reports_details(self):
        with pytest.raises(DeviceValidationError) as exc_info:
            parse_create_request({"key": "AABBCCDDEEFF", "value": make_device_data(name="")})

        assert any(item["path"] == "value.name" for item in exc_info.value.details)

    def test_classify_content_update(self):
        request = classify_update_request({"key": "AABBCCDDEEFF", "content": {"title": "t"}})

        assert isinstance(request, UpdateDeviceContentRequest)

    def test_classify_prefers_content_over_value(self):
        request = classify_update_request(
            {"key": "AABBCCDDEEFF", "content": {"title": "t"}, "value": make_device_data()}
        )

        assert isinstance(request, UpdateDeviceContentRequest)

    def test_classify_full_update(self):
        request = classify_update_request({"key": "AABBCCDDEEFF", "value": make_device_data()})

        assert isinstance(request, UpdateDeviceRequest)

    def test_classify_rejects_unknown_shape(self):
        with pytest.raises(DeviceValidationError):
            classify_update_request({"key": "AABBCCDDEEFF"})

    def test_parse_owner_query(self):
        query = parse_owner_query("alice", OWNER_KEY)

        assert query.owner == "alice"
        with pytest.raises(DeviceValidationError):
            parse_owner_query("alice", "short")
