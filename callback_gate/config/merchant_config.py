"""Merchant credential configuration from environment variables."""
import logging

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from callback_gate.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CALLBACK_PATH_PREFIX = "/callback/agGame"
DEFAULT_MAX_BODY_BYTES = 1024 * 1024


class MerchantCredential(BaseModel):
    """Merchant code and secret key shared read-only by every request."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Merchant code assigned by the partner")
    secret_key: bytes = Field(..., repr=False, description="HMAC key (UTF-8 encoded secret)")


class MerchantConfig(BaseSettings):
    """Callback gate configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    merchant_code: str = Field(
        ...,
        validation_alias="MERCHANT_CODE",
        description="Merchant code the partner sends in x-merchant-code",
    )

    merchant_secret: SecretStr = Field(
        ...,
        validation_alias="MERCHANT_SECRET",
        description="Shared secret used as the HMAC-SHA256 key",
    )

    callback_path_prefix: str = Field(
        default=DEFAULT_CALLBACK_PATH_PREFIX,
        validation_alias="CALLBACK_PATH_PREFIX",
        description="Requests under this path prefix must be signed",
    )

    max_body_bytes: int = Field(
        default=DEFAULT_MAX_BODY_BYTES,
        validation_alias="CALLBACK_MAX_BODY_BYTES",
        description="Largest callback body buffered for verification",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("merchant_code")
    @classmethod
    def validate_merchant_code(cls, v: str) -> str:
        """Reject blank merchant codes."""
        if not v or not v.strip():
            raise ValueError("MERCHANT_CODE must not be blank")
        return v.strip()

    @field_validator("merchant_secret")
    @classmethod
    def validate_merchant_secret(cls, v: SecretStr) -> SecretStr:
        """Reject blank secrets."""
        if not v.get_secret_value().strip():
            raise ValueError("MERCHANT_SECRET must not be blank")
        return v

    @field_validator("callback_path_prefix")
    @classmethod
    def validate_callback_path_prefix(cls, v: str) -> str:
        """Path prefix must be absolute."""
        if not v.startswith("/"):
            raise ValueError("CALLBACK_PATH_PREFIX must start with '/'")
        return v

    @field_validator("max_body_bytes")
    @classmethod
    def validate_max_body_bytes(cls, v: int) -> int:
        """Size cap must be positive."""
        if v <= 0:
            raise ValueError("CALLBACK_MAX_BODY_BYTES must be greater than 0")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(valid_levels)}")
        return v_upper

    def credential(self) -> MerchantCredential:
        """Build the immutable credential used for signature verification."""
        return MerchantCredential(
            code=self.merchant_code,
            secret_key=self.merchant_secret.get_secret_value().encode("utf-8"),
        )


def load_merchant_config(**overrides: object) -> MerchantConfig:
    """
    Load merchant configuration, failing fast on invalid values.

    Keyword overrides take precedence over the environment and are
    keyed by environment variable name (e.g. ``MERCHANT_CODE="M1"``).

    Raises:
        ConfigurationError: If the merchant code or secret is missing or malformed
    """
    try:
        config = MerchantConfig(**overrides)
    except ValidationError as e:
        details = [
            {
                "field": ".".join(str(loc) for loc in error.get("loc", [])),
                "issue": error.get("msg", "Invalid value"),
            }
            for error in e.errors()
        ]
        logger.error(
            "Merchant configuration validation failed",
            extra={"error_count": len(details), "errors": details},
        )
        raise ConfigurationError(details=details) from e

    logger.info(
        "Merchant configuration loaded",
        extra={
            "merchant_code": config.merchant_code,
            "callback_path_prefix": config.callback_path_prefix,
            "max_body_bytes": config.max_body_bytes,
        },
    )
    return config
