import re
import shlex
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from camrelay.shared.config import config
from camrelay.utils.app_errors import ConfigurationError

# ffmpeg reading a V4L2 webcam and writing MJPEG to stdout
DEFAULT_CAPTURE_ARGS: tuple[str, ...] = (
    "-f", "v4l2",
    "-i", "{device}",
    "-f", "mjpeg",
    "-q:v", "5",
    "-pix_fmt", "yuvj422p",
    "-vcodec", "mjpeg",
    "-an",
    "-",
)

# RFC 2046 boundary: 1-70 chars from bchars, not ending with a space
_BOUNDARY_RE = re.compile(r"^[0-9A-Za-z'()+_,\-./:=? ]{0,69}[0-9A-Za-z'()+_,\-./:=?]$")


class CaptureConfig(BaseModel):
    """Resolved capture process invocation, built once at startup."""

    model_config = ConfigDict(frozen=True)

    command: str
    args: tuple[str, ...]
    device: str
    read_size: int = 65536
    start_timeout: float = 10.0
    kill_timeout: float = 5.0

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]


class StreamConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    boundary: str = "myboundary"
    require_auth: bool = True


class SeedUser(BaseModel):
    id: str
    username: str
    password: str


class AppEnvironConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    API_WORKERS: int = 1
    DEBUG: bool = False
    API_CORS_ORIGINS: list[str] = ["*"]

    # Credential gate
    JWT_SECRET: str | None = None
    TOKEN_EXPIRE_SECONDS: int = 3600
    CREDENTIAL_KEY_PREFIX: str = "user"
    SEED_USERS: str | None = None

    # Capture process
    CAPTURE_COMMAND: str = "ffmpeg"
    CAPTURE_DEVICE: str = "/dev/video2"
    CAPTURE_ARGS: str | None = None
    CAPTURE_READ_SIZE: int = 65536
    CAPTURE_START_TIMEOUT: float = 10.0
    CAPTURE_KILL_TIMEOUT: float = 5.0

    # Stream relay
    STREAM_BOUNDARY: str = "myboundary"
    STREAM_REQUIRE_AUTH: bool = True

    @field_validator("API_CORS_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [x.strip() for x in value.split(",") if x.strip()]
        return value

    @field_validator("TOKEN_EXPIRE_SECONDS", "CAPTURE_READ_SIZE", "API_WORKERS")
    @classmethod
    def _positive_int(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("CAPTURE_START_TIMEOUT", "CAPTURE_KILL_TIMEOUT")
    @classmethod
    def _positive_float(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @classmethod
    def from_source(cls, source: Any = None) -> "AppEnvironConfig":
        """Build from an EnvironConfig-like mapping, ignoring blank values.

        PORT takes precedence over API_PORT, matching common PaaS conventions.

        Raises:
            ConfigurationError: If a value cannot be parsed.
        """
        if source is None:
            source = config

        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = source.get(name)
            if raw is not None and str(raw).strip():
                values[name] = str(raw).strip()

        port = source.get("PORT")
        if port is not None and str(port).strip():
            values["API_PORT"] = str(port).strip()

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def capture_config(self) -> CaptureConfig:
        """Resolve the capture command line.

        CAPTURE_ARGS is split shell-style; every `{device}` placeholder is
        replaced with CAPTURE_DEVICE.

        Raises:
            ConfigurationError: If the command or device is missing.
        """
        command = self.CAPTURE_COMMAND.strip()
        device = self.CAPTURE_DEVICE.strip()
        if not command:
            raise ConfigurationError("CAPTURE_COMMAND is not set")
        if not device:
            raise ConfigurationError("CAPTURE_DEVICE is not set")

        if self.CAPTURE_ARGS:
            try:
                template = tuple(shlex.split(self.CAPTURE_ARGS))
            except ValueError as e:
                raise ConfigurationError(f"CAPTURE_ARGS cannot be parsed: {e}") from e
        else:
            template = DEFAULT_CAPTURE_ARGS

        return CaptureConfig(
            command=command,
            args=tuple(arg.replace("{device}", device) for arg in template),
            device=device,
            read_size=self.CAPTURE_READ_SIZE,
            start_timeout=self.CAPTURE_START_TIMEOUT,
            kill_timeout=self.CAPTURE_KILL_TIMEOUT,
        )

    def stream_config(self) -> StreamConfig:
        if not _BOUNDARY_RE.match(self.STREAM_BOUNDARY):
            raise ConfigurationError(
                f"STREAM_BOUNDARY '{self.STREAM_BOUNDARY}' is not a valid multipart boundary"
            )
        return StreamConfig(boundary=self.STREAM_BOUNDARY, require_auth=self.STREAM_REQUIRE_AUTH)

    def jwt_secret(self) -> str:
        if not self.JWT_SECRET:
            raise ConfigurationError("JWT_SECRET environment variable is not set")
        return self.JWT_SECRET

    def seed_users(self) -> list[SeedUser]:
        """Users to create at startup, from the SEED_USERS JSON list."""
        if not self.SEED_USERS:
            return []

        try:
            data = orjson.loads(self.SEED_USERS)
            if not isinstance(data, list):
                raise ValueError("SEED_USERS must be a JSON list")
            return [SeedUser.model_validate(item) for item in data]
        except (orjson.JSONDecodeError, ValueError) as e:
            raise ConfigurationError(f"SEED_USERS is invalid: {e}") from e

    def validate_startup(self) -> None:
        """Check everything needed before the service accepts connections."""
        self.jwt_secret()
        self.capture_config()
        self.stream_config()
        self.seed_users()


_app_environ_config: AppEnvironConfig | None = None


def get_app_environ_config() -> AppEnvironConfig:
    global _app_environ_config
    if _app_environ_config is None:
        _app_environ_config = AppEnvironConfig.from_source(config)
    return _app_environ_config
