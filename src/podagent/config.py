"""Agent configuration using pydantic-settings.

Configuration hierarchy:
- KubernetesConfig: API server connection settings
- InstanceConfig: Pod labelling conventions
- AuthConfig: Identity resolution settings
- LoggingConfig: Logging behavior
- ServerConfig: HTTP server settings
- AgentConfig: Main config aggregating all sub-configs

Environment variable prefix: PODAGENT_
Example: PODAGENT_KUBE_API_SERVER=https://10.0.0.1:6443
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"


class KubernetesConfig(BaseSettings):
    """Kubernetes API server connection.

    Defaults target the in-cluster service account. For local development
    set api_server and token (or token_file) explicitly.
    """

    model_config = SettingsConfigDict(env_prefix="PODAGENT_KUBE_")

    api_server: str = Field(
        default="https://kubernetes.default.svc",
        description="Kubernetes API server URL",
    )
    token: str = Field(default="", description="Bearer token (overrides token_file)")
    token_file: str = Field(
        default=f"{_SERVICE_ACCOUNT_DIR}/token",
        description="Path to the service account token",
    )
    ca_file: str = Field(
        default=f"{_SERVICE_ACCOUNT_DIR}/ca.crt",
        description="CA bundle used to verify the API server",
    )
    verify_ssl: bool = Field(default=True, description="Verify API server certificate")

    # Timeouts
    api_timeout: float = Field(default=30.0, description="API call timeout (seconds)")


class InstanceConfig(BaseSettings):
    """Conventions used to recognise application instances among pods."""

    model_config = SettingsConfigDict(env_prefix="PODAGENT_INSTANCE_")

    app_guid_label: str = Field(
        default="workloads.cloudfoundry.org/app-guid",
        description="Pod label carrying the application GUID",
    )
    index_env_var: str = Field(
        default="CF_INSTANCE_INDEX",
        description="Container env var declaring the instance index",
    )


class AuthConfig(BaseSettings):
    """Identity resolution configuration."""

    model_config = SettingsConfigDict(env_prefix="PODAGENT_AUTH_")

    identity_cache_ttl: float = Field(default=30.0)  # seconds
    identity_cache_size: int = Field(default=1000)


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Supports both text and JSON formats for different environments:
    - text: Human-readable for local development
    - json: Structured logging for production (log aggregation)
    """

    model_config = SettingsConfigDict(env_prefix="PODAGENT_LOGGING_")

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(default="podagent", description="Service identifier in logs")


class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="PODAGENT_SERVER_")

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, description="Server port")
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )


class AgentConfig(BaseSettings):
    """Main agent configuration aggregating all sub-configs.

    Environment variable prefix: PODAGENT_
    Sub-configs use their own prefixes (PODAGENT_KUBE_, PODAGENT_LOGGING_, etc.)
    """

    model_config = SettingsConfigDict(
        env_prefix="PODAGENT_",
        env_nested_delimiter="__",
    )

    kube: KubernetesConfig = Field(default_factory=KubernetesConfig)
    instance: InstanceConfig = Field(default_factory=InstanceConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


@lru_cache
def get_agent_config() -> AgentConfig:
    """Get cached agent configuration singleton."""
    return AgentConfig()
