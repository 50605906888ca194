"""Configuration management for the Cloud Foundry plugin."""

from pathlib import Path
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bosh_cloudfoundry.manifest.rules import AttributeRules


DEFAULT_STEMCELL_URL_TEMPLATE = (
    "http://bosh-jenkins-artifacts.s3.amazonaws.com/bosh-stemcell/{cpi}/latest-bosh-stemcell-{cpi}.tgz"
)


class Settings(BaseSettings):
    """Plugin configuration settings.

    Director credentials, the non-interactive flag and artifact locations are
    held in one explicit object handed to the deployer.
    """

    model_config = SettingsConfigDict(
        env_prefix="BOSH_CF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Director
    director_url: Optional[str] = Field(None, description="BOSH director base URL")
    director_username: Optional[str] = Field(None, description="Director basic-auth user")
    director_password: Optional[str] = Field(None, description="Director basic-auth password")
    verify_tls: bool = Field(False, description="Verify the director TLS certificate")
    request_timeout_seconds: float = Field(30.0, description="Timeout for a single director request")
    task_poll_interval_seconds: float = Field(1.0, description="Delay between director task polls")
    task_timeout_seconds: float = Field(3600.0, description="Give up waiting on a director task after this long")

    # CLI behaviour
    non_interactive: bool = Field(False, description="Never prompt for confirmation")

    # Deployments
    deployments_dir: Path = Field(Path("deployments"), description="Root directory for deployment manifests")
    default_name: str = Field("demo", description="Deployment name used when --name is omitted")
    default_size: str = Field("medium", description="Deployment size used when --size is omitted")

    # Release and stemcell
    release_name: str = Field("cf-release", description="Managed release name")
    release_version: int = Field(133, description="Managed release version")
    release_dir: Path = Field(Path("releases"), description="Directory holding cf-release-<version>.tgz")
    release_url: Optional[str] = Field(None, description="Upload the release from this URL instead of release_dir")
    stemcell_url_template: str = Field(
        DEFAULT_STEMCELL_URL_TEMPLATE,
        description="Stemcell download URL; {cpi} is replaced by the director CPI",
    )

    # Observability
    log_level: str = Field("INFO", description="Log level")
    log_format: str = Field("console", description="json or console")

    @validator("director_url", pre=True)
    def strip_director_url(cls, v: Optional[str]) -> Optional[str]:
        """Drop trailing slashes so paths can be appended."""
        if v:
            return v.strip().rstrip("/")
        return None

    @validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return v

    @validator("log_format")
    def validate_log_format(cls, v: str) -> str:
        if v not in ("json", "console"):
            raise ValueError(f"log_format must be json or console, got: {v}")
        return v

    def release_location(self, version: Optional[int] = None) -> str:
        """Tarball path or URL uploaded when the director lacks the release."""
        if self.release_url:
            return self.release_url
        return str(self.release_dir / f"{self.release_name}-{version or self.release_version}.tgz")

    def stemcell_url(self, cpi: str) -> str:
        return self.stemcell_url_template.format(cpi=cpi)

    def deployment_path(self, name: Optional[str] = None) -> Path:
        """Manifest location for a named deployment.

        Raises:
            ValidationError: If the name could escape the deployments directory
        """
        name = name or self.default_name
        AttributeRules.validate("name", name)
        return self.deployments_dir / "cf" / f"{name}.yml"

    @property
    def has_credentials(self) -> bool:
        return bool(self.director_url and self.director_username and self.director_password)
