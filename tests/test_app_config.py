"""Tests for startup configuration parsing and validation."""

import pytest

from camrelay.app_config import DEFAULT_CAPTURE_ARGS, AppEnvironConfig
from camrelay.utils.app_errors import ConfigurationError

SECRET = "test-secret-key-that-is-long-enough-for-hs256"


def build(**values) -> AppEnvironConfig:
    return AppEnvironConfig.from_source(values)


class TestFromSource:
    def test_defaults(self):
        cfg = build(JWT_SECRET=SECRET)

        assert cfg.API_PORT == 8080
        assert cfg.TOKEN_EXPIRE_SECONDS == 3600
        assert cfg.STREAM_BOUNDARY == "myboundary"
        assert cfg.STREAM_REQUIRE_AUTH is True
        assert cfg.API_CORS_ORIGINS == ["*"]

    def test_port_overrides_api_port(self):
        cfg = build(API_PORT="9000", PORT="8081")
        assert cfg.API_PORT == 8081

    def test_blank_values_use_defaults(self):
        cfg = build(API_PORT="", CAPTURE_DEVICE="  ")
        assert cfg.API_PORT == 8080
        assert cfg.CAPTURE_DEVICE == "/dev/video2"

    def test_cors_origins_split(self):
        cfg = build(API_CORS_ORIGINS="http://a.local, http://b.local")
        assert cfg.API_CORS_ORIGINS == ["http://a.local", "http://b.local"]

    def test_boolean_flags(self):
        cfg = build(STREAM_REQUIRE_AUTH="false", DEBUG="true")
        assert cfg.STREAM_REQUIRE_AUTH is False
        assert cfg.DEBUG is True

    @pytest.mark.parametrize(
        "key,value",
        [
            ("API_PORT", "not-a-port"),
            ("TOKEN_EXPIRE_SECONDS", "0"),
            ("CAPTURE_READ_SIZE", "-1"),
            ("CAPTURE_START_TIMEOUT", "0"),
        ],
    )
    def test_invalid_values_raise(self, key, value):
        with pytest.raises(ConfigurationError):
            build(**{key: value})


class TestCaptureConfig:
    def test_default_ffmpeg_invocation(self):
        capture = build().capture_config()

        assert capture.command == "ffmpeg"
        assert capture.device == "/dev/video2"
        assert capture.argv[:5] == ["ffmpeg", "-f", "v4l2", "-i", "/dev/video2"]
        assert capture.argv[-1] == "-"
        assert len(capture.args) == len(DEFAULT_CAPTURE_ARGS)

    def test_device_substituted_into_custom_args(self):
        capture = build(
            CAPTURE_COMMAND="/usr/local/bin/ffmpeg",
            CAPTURE_DEVICE="/dev/video0",
            CAPTURE_ARGS="-f v4l2 -input_format mjpeg -i {device} -c copy -f mjpeg -",
        ).capture_config()

        assert capture.argv == [
            "/usr/local/bin/ffmpeg",
            "-f", "v4l2",
            "-input_format", "mjpeg",
            "-i", "/dev/video0",
            "-c", "copy",
            "-f", "mjpeg",
            "-",
        ]

    def test_timeouts_and_read_size(self):
        capture = build(
            CAPTURE_READ_SIZE="4096",
            CAPTURE_START_TIMEOUT="2.5",
            CAPTURE_KILL_TIMEOUT="1",
        ).capture_config()

        assert capture.read_size == 4096
        assert capture.start_timeout == 2.5
        assert capture.kill_timeout == 1.0

    @pytest.mark.parametrize("field", ["CAPTURE_COMMAND", "CAPTURE_DEVICE"])
    def test_empty_command_or_device(self, field):
        cfg = AppEnvironConfig(**{field: "  "})

        with pytest.raises(ConfigurationError) as exc_info:
            cfg.capture_config()

        assert field in str(exc_info.value)

    def test_unparseable_args(self):
        with pytest.raises(ConfigurationError):
            build(CAPTURE_ARGS="-i 'unterminated").capture_config()


class TestStreamConfig:
    @pytest.mark.parametrize("boundary", ["myboundary", "frame", "a" * 70, "with space inside"])
    def test_valid_boundaries(self, boundary):
        assert build(STREAM_BOUNDARY=boundary).stream_config().boundary == boundary

    @pytest.mark.parametrize("boundary", ["a" * 71, "bad\r\nheader", "semi;colon", 'quo"te'])
    def test_invalid_boundaries(self, boundary):
        with pytest.raises(ConfigurationError):
            build(STREAM_BOUNDARY=boundary).stream_config()


class TestSecretsAndUsers:
    def test_missing_jwt_secret_fails_startup(self):
        with pytest.raises(ConfigurationError) as exc_info:
            build(JWT_SECRET="").validate_startup()

        assert "JWT_SECRET" in str(exc_info.value)

    def test_validate_startup_passes(self):
        build(JWT_SECRET=SECRET).validate_startup()

    def test_seed_users_parsed(self):
        cfg = build(SEED_USERS='[{"id": "1", "username": "testuser", "password": "password123"}]')

        users = cfg.seed_users()

        assert len(users) == 1
        assert users[0].username == "testuser"

    @pytest.mark.parametrize("raw", ["not json", '{"id": "1"}', '[{"id": "1"}]'])
    def test_invalid_seed_users(self, raw):
        with pytest.raises(ConfigurationError):
            build(SEED_USERS=raw).seed_users()
