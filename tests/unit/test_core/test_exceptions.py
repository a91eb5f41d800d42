# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tests for exception handling and secret redaction."""
from __future__ import annotations

import pytest
from imageprep.core.exceptions import (
    BackupError,
    ConfigError,
    Fatal,
    ImagePrepError,
    SinkError,
    format_exception_for_cli,
    wrap_backup,
    wrap_config,
    wrap_fatal,
    wrap_sink,
)


@pytest.mark.unit
class TestExceptionHierarchy:
    """Test exception class hierarchy and basic functionality."""

    def test_base_exception_creation(self):
        err = ImagePrepError(code=1, msg="Test error")

        assert err.code == 1
        assert err.msg == "Test error"
        assert err.cause is None
        assert err.context == {}

    @pytest.mark.parametrize("cls", [ConfigError, SinkError, BackupError])
    def test_fatal_subclasses(self, cls):
        err = cls(code=2, msg="boom")

        assert isinstance(err, Fatal)
        assert isinstance(err, ImagePrepError)
        assert str(err) == "boom"

    def test_message_is_single_line(self):
        err = ImagePrepError(msg="first line\nsecond   line")
        assert err.msg == "first line second line"

    def test_empty_message_falls_back_to_class_name(self):
        assert SinkError(msg="").msg == "SinkError"


@pytest.mark.unit
class TestWrapHelpers:
    def test_default_codes(self):
        assert wrap_fatal("x").code == 1
        assert wrap_config("x").code == 2
        assert wrap_sink("x").code == 3
        assert wrap_backup("x").code == 1

    def test_cause_and_context(self):
        cause = FileNotFoundError("mdata-put.exe")
        err = wrap_sink("Metadata sink failed", cause, sink="mdata-put.exe", mdata_key="state")

        assert isinstance(err, SinkError)
        assert err.cause is cause
        assert err.context == {"sink": "mdata-put.exe", "mdata_key": "state"}

    def test_no_context_gives_empty_dict(self):
        assert wrap_backup("x").context == {}


@pytest.mark.security
class TestSecretRedaction:
    """Test that secrets are redacted from error contexts."""

    @pytest.mark.parametrize("field", ["password", "api_key", "token", "auth_header", "privateKey"])
    def test_secret_fields_redacted(self, field):
        err = wrap_backup("Mirror failed", **{field: "hunter2", "path": "/data/imgapi"})

        out = format_exception_for_cli(err, verbose=1)

        assert "hunter2" not in out
        assert f"{field}=<redacted>" in out
        assert "path='/data/imgapi'" in out

    @pytest.mark.parametrize("field", ["mdata_key", "setting"])
    def test_key_names_stay_visible(self, field):
        err = wrap_sink("metadata sink failed", **{field: "state"})
        assert f"{field}='state'" in format_exception_for_cli(err, verbose=1)


@pytest.mark.unit
class TestExceptionExitCodes:
    @pytest.mark.parametrize("code, expected", [(0, 0), (3, 3), (255, 255), (-1, 1), (300, 255), ("nope", 1)])
    def test_exit_code_clamped(self, code, expected):
        assert ImagePrepError(code=code, msg="x").code == expected


@pytest.mark.unit
class TestFormatForCli:
    def test_verbosity_levels(self):
        err = wrap_fatal("must run on Windows", ImportError("winreg"), host="linux")

        assert format_exception_for_cli(err) == "must run on Windows"
        assert "host='linux'" in format_exception_for_cli(err, verbose=1)
        assert "(cause: ImportError: winreg)" in format_exception_for_cli(err, verbose=2)

    def test_plain_exception(self):
        assert format_exception_for_cli(ValueError("bad")) == "bad"
        assert format_exception_for_cli(ValueError("bad"), verbose=2) == "ValueError: bad"
        assert format_exception_for_cli(KeyError()) == "KeyError"
