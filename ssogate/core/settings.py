"""Gateway settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

CALLBACK_PATH_DEFAULT = "/auth/oauth2/callback"
PROVIDER_TIMEOUT_DEFAULT = 10.0


class ProviderSettings(BaseSettings):
    """OAuth2 / OpenID Connect provider endpoints and client credentials."""

    model_config = SettingsConfigDict(env_prefix="SSOGATE_OIDC_", frozen=True)

    auth_url: str = ""
    token_url: str = ""
    userinfo_url: str = ""
    client_id: str = ""
    client_secret: str = ""
    scopes: str = "openid profile email"
    timeout: float = PROVIDER_TIMEOUT_DEFAULT


class GatewaySettings(BaseSettings):
    """Issuer identity, signing secrets and HTTP surface settings."""

    model_config = SettingsConfigDict(env_prefix="SSOGATE_", frozen=True)

    app_name: str = "ssogate"
    shared_secrets: str = ""
    callback_path: str = CALLBACK_PATH_DEFAULT
    external_url: str = ""
    client_cert_auth: bool = True
    security_headers: bool = True
    log_level: str = "INFO"
    log_json: bool = False

    def get_secret_list(self) -> list[str]:
        """Parse comma-separated shared secrets, highest priority first."""
        if not self.shared_secrets:
            return []
        return [s.strip() for s in self.shared_secrets.split(",") if s.strip()]
