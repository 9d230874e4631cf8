"""Keycloak connection settings.

Settings can be provided via:
1. Environment variables (KEYCLOAK_OPERATOR_KEYCLOAK_*)
2. CLI arguments (--base-url, --admin-user, etc.)
3. The admin credential secret of a managed instance (see ``factory``)
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ADMIN_CLIENT_ID = "admin-cli"


class KeycloakSettings(BaseSettings):
    """Keycloak connection and authentication settings."""

    model_config = SettingsConfigDict(
        env_prefix="KEYCLOAK_OPERATOR_KEYCLOAK_",
        extra="ignore",
    )

    # Connection
    base_url: str = Field(
        default="http://localhost:8080",
        description="Keycloak base URL",
    )
    base_path: str = Field(
        default="/auth",
        description="Context path Keycloak is served under",
    )
    timeout: float = Field(
        default=10.0,
        description="HTTP request timeout in seconds",
    )
    verify_tls: bool = Field(
        default=False,
        description="Verify the server certificate",
    )

    # Admin user authentication (master realm)
    admin_client_id: str = Field(
        default=DEFAULT_ADMIN_CLIENT_ID,
        description="Client used for the password grant",
    )
    admin_user: str | None = Field(
        default=None,
        description="Keycloak admin username",
    )
    admin_password: str | None = Field(
        default=None,
        description="Keycloak admin password",
    )

    @property
    def root_url(self) -> str:
        """Base URL including the context path."""
        return f"{self.base_url.rstrip('/')}{self.base_path.rstrip('/')}"

    @property
    def admin_url(self) -> str:
        """Get the admin API URL."""
        return f"{self.root_url}/admin"

    @property
    def token_url(self) -> str:
        """Get the master realm token endpoint (for admin login)."""
        return f"{self.root_url}/realms/master/protocol/openid-connect/token"

    @property
    def ping_url(self) -> str:
        return f"{self.root_url}/"

    @property
    def has_admin_credentials(self) -> bool:
        """Check if admin user credentials are available."""
        return bool(self.admin_user and self.admin_password)

    def with_overrides(
        self,
        *,
        base_url: str | None = None,
        admin_user: str | None = None,
        admin_password: str | None = None,
        admin_client_id: str | None = None,
    ) -> "KeycloakSettings":
        """Create a new settings instance with overrides applied."""
        return KeycloakSettings(
            base_url=base_url or self.base_url,
            base_path=self.base_path,
            timeout=self.timeout,
            verify_tls=self.verify_tls,
            admin_user=admin_user or self.admin_user,
            admin_password=admin_password or self.admin_password,
            admin_client_id=admin_client_id or self.admin_client_id,
        )
