# tests/apps/test_models.py
"""Tests for the wire and host-context models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from mcp_app_bridge.apps.models import (
    AppInfo,
    ContainerDimensions,
    DisplayMode,
    Envelope,
    HostContext,
    Method,
    SizeSample,
    Theme,
)


class TestEnvelopeClassification:
    def test_request(self):
        env = Envelope.model_validate(
            {"jsonrpc": "2.0", "id": 3, "method": "ui/resource-teardown"}
        )
        assert env.is_request
        assert not env.is_notification
        assert not env.is_response
        assert not env.is_malformed

    def test_notification(self):
        env = Envelope.model_validate(
            {"jsonrpc": "2.0", "method": "ui/notifications/tool-result", "params": {}}
        )
        assert env.is_notification
        assert not env.is_request

    def test_response_with_result(self):
        env = Envelope.model_validate({"jsonrpc": "2.0", "id": 1, "result": 0})
        assert env.is_response
        assert env.has_result

    def test_response_with_null_result(self):
        env = Envelope.model_validate({"jsonrpc": "2.0", "id": 1, "result": None})
        assert env.is_response

    def test_response_with_error(self):
        env = Envelope.model_validate(
            {"jsonrpc": "2.0", "id": 1, "error": {"message": "nope"}}
        )
        assert env.is_response
        assert env.has_error
        assert env.error.message == "nope"

    def test_string_error_coerced(self):
        env = Envelope.model_validate({"jsonrpc": "2.0", "id": 1, "error": "bad"})
        assert env.error.message == "bad"

    def test_id_without_method_or_result_is_malformed(self):
        env = Envelope.model_validate({"jsonrpc": "2.0", "id": 1})
        assert env.is_malformed

    def test_null_id_is_still_an_id(self):
        env = Envelope.model_validate({"jsonrpc": "2.0", "id": None, "result": {}})
        assert env.has_id
        assert env.is_response

    @pytest.mark.parametrize("request_id", [7, 1.5, "abc"])
    def test_id_types_preserved(self, request_id):
        env = Envelope.model_validate(
            {"jsonrpc": "2.0", "id": request_id, "method": "ui/resource-teardown"}
        )
        assert env.is_request
        assert env.id == request_id
        assert type(env.id) is type(request_id)

    @pytest.mark.parametrize("version", ["1.0", "2", ""])
    def test_wrong_jsonrpc_rejected(self, version):
        with pytest.raises(ValidationError):
            Envelope.model_validate({"jsonrpc": version, "method": "x"})

    def test_missing_jsonrpc_rejected(self):
        with pytest.raises(ValidationError):
            Envelope.model_validate({"method": "x"})


class TestEnvelopeConstruction:
    def test_notification_wire(self):
        env = Envelope.make_notification(
            Method.SIZE_CHANGED.value, {"width": 1, "height": 2}
        )
        assert env.to_wire() == {
            "jsonrpc": "2.0",
            "method": "ui/notifications/size-changed",
            "params": {"width": 1, "height": 2},
        }

    def test_response_wire(self):
        assert Envelope.make_response(7, {}).to_wire() == {
            "jsonrpc": "2.0",
            "id": 7,
            "result": {},
        }

    def test_request_without_params_keeps_null(self):
        wire = Envelope.make_request(1, "m").to_wire()
        assert wire["method"] == "m"
        assert wire["id"] == 1


class TestHostContext:
    def test_defaults(self):
        ctx = HostContext()
        assert ctx.theme is None
        assert ctx.display_mode is DisplayMode.INLINE
        assert ctx.container_dimensions is None

    def test_merge_theme_and_mode(self):
        ctx = HostContext().merged({"theme": "dark", "displayMode": "fullscreen"})
        assert ctx.theme is Theme.DARK
        assert ctx.display_mode is DisplayMode.FULLSCREEN

    def test_merge_keeps_unmentioned_fields(self):
        ctx = HostContext().merged({"theme": "dark"}).merged({"displayMode": "inline"})
        assert ctx.theme is Theme.DARK

    def test_merge_ignores_invalid_values(self):
        base = HostContext().merged({"theme": "light"})
        ctx = base.merged({"theme": "sepia", "displayMode": "pip"})
        assert ctx is base

    def test_merge_ignores_unhashable_values(self):
        base = HostContext()
        assert base.merged({"theme": ["dark"], "displayMode": {"x": 1}}) is base

    def test_merge_container_dimensions(self):
        ctx = HostContext().merged(
            {"containerDimensions": {"width": 400, "maxHeight": 600}}
        )
        assert ctx.container_dimensions == ContainerDimensions(
            width=400, max_height=600
        )
        assert ctx.container_dimensions.max_height == 600

    def test_merge_bad_dimensions_ignored(self):
        base = HostContext()
        assert base.merged({"containerDimensions": {"width": "wide"}}) is base

    def test_styles(self):
        ctx = HostContext().merged(
            {
                "styles": {
                    "variables": {"--color-bg": "#000"},
                    "css": {"fonts": "@font-face {}"},
                }
            }
        )
        assert ctx.style_variables == {"--color-bg": "#000"}
        assert ctx.fonts == "@font-face {}"

    def test_merge_non_mapping_is_noop(self):
        base = HostContext()
        assert base.merged(None) is base
        assert base.merged("dark") is base

    def test_frozen(self):
        with pytest.raises(ValidationError):
            HostContext().theme = Theme.DARK


class TestSmallModels:
    def test_app_info_defaults(self):
        info = AppInfo()
        assert info.model_dump() == {"name": "mcp-app", "version": "1.0.0"}

    def test_size_sample(self):
        assert SizeSample(width=10, height=20).model_dump() == {
            "width": 10,
            "height": 20,
        }
