"""Application settings powered by Pydantic BaseSettings."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from feedsync.feedbin.constants import FEEDBIN_MAX_QPS
from feedsync.transport.config import TransportConfig
from feedsync.transport.constants import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT
from feedsync.transport.models import Credentials


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    feedbin_username: str | None = Field(
        default=None, validation_alias="FEEDBIN_USERNAME"
    )
    feedbin_password: SecretStr | None = Field(
        default=None, validation_alias="FEEDBIN_PASSWORD"
    )
    feedly_access_token: SecretStr | None = Field(
        default=None, validation_alias="FEEDLY_ACCESS_TOKEN"
    )
    feedly_user_id: str = Field(default="", validation_alias="FEEDLY_USER_ID")
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT, validation_alias="FEEDSYNC_USER_AGENT"
    )
    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        ge=1.0,
        validation_alias="FEEDSYNC_TIMEOUT_SECONDS",
    )
    max_workers: int = Field(default=4, ge=1, validation_alias="FEEDSYNC_MAX_WORKERS")
    feedbin_max_qps: float = Field(
        default=FEEDBIN_MAX_QPS, gt=0, validation_alias="FEEDSYNC_FEEDBIN_MAX_QPS"
    )

    def feedbin_credentials(self) -> Credentials | None:
        """Return Feedbin basic-auth credentials if both parts are set."""
        if not self.feedbin_username or self.feedbin_password is None:
            return None
        return Credentials.basic(
            self.feedbin_username, self.feedbin_password.get_secret_value()
        )

    def feedly_credentials(self) -> Credentials | None:
        """Return the Feedly access token credentials if set."""
        if self.feedly_access_token is None:
            return None
        return Credentials.oauth_access_token(
            self.feedly_user_id, self.feedly_access_token.get_secret_value()
        )

    def transport_config(self) -> TransportConfig:
        """Build the transport configuration."""
        return TransportConfig(
            user_agent=self.user_agent,
            timeout_seconds=self.timeout_seconds,
        )


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
