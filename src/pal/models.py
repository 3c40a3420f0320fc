"""Pydantic models: persisted documents and API request/response bodies."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

KEYSTORE_VERSION = 1


# --- Keystore document ---


class SecretEntry(BaseModel):
    """One AES-256-GCM record. All fields are hex-encoded."""

    model_config = ConfigDict(populate_by_name=True)

    iv: str
    auth_tag: str = Field(alias="authTag")
    ciphertext: str


class KeystoreDocument(BaseModel):
    """The on-disk keystore: schema version, key location flag, and entries.

    ``master_key_in_keychain`` records where the master key was last written
    (OS vault when true, key file when false).
    """

    model_config = ConfigDict(populate_by_name=True)

    version: int = KEYSTORE_VERSION
    master_key_in_keychain: bool = Field(default=False, alias="masterKeyInKeychain")
    secrets: dict[str, SecretEntry] = Field(default_factory=dict)


class KeystoreInfo(BaseModel):
    """Diagnostic view of the keystore."""

    path: str
    using_keychain: bool

    @property
    def storage(self) -> str:
        return "os-keychain" if self.using_keychain else "encrypted-file"


# --- Project config (pal.config.json) ---


class ServiceConfig(BaseModel):
    """A third-party API service configured in a project."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    env_var_key: str = Field(min_length=1, alias="envVarKey")
    scopes: list[str] | None = None
    client_file: str | None = Field(default=None, alias="clientFile")


class PalConfig(BaseModel):
    """Per-project configuration file contents."""

    model_config = ConfigDict(populate_by_name=True)

    project_name: str = Field(min_length=1, alias="projectName")
    language: Literal["node", "python", "other"] = "node"
    framework: Literal["none", "express", "nextjs", "fastapi", "other"] = "none"
    env_file: str = Field(default=".env", alias="envFile")
    services: list[ServiceConfig] = Field(default_factory=list)


# --- Projects registry (<home>/projects.json) ---


class RegisteredProject(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    path: str
    added_at: str = Field(alias="addedAt")


class ProjectsRegistry(BaseModel):
    projects: list[RegisteredProject] = Field(default_factory=list)


# --- Env files ---


class EnvResult(BaseModel):
    """Outcome of merging values into an env file."""

    path: str
    created: bool = False
    updated: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


# --- Requests ---


class StoreSecretRequest(BaseModel):
    """Store or replace a secret value. The value is never echoed back."""

    value: str


class AddServiceRequest(BaseModel):
    """Add a provider's API key to a project."""

    project_path: str
    provider: str
    api_key: str
    env_var_key: str | None = None
    service_id: str | None = None


class ProjectPathRequest(BaseModel):
    project_path: str


# --- Responses ---


class KeystoreStatus(BaseModel):
    """Keystore section of the health response."""

    path: str
    using_keychain: bool
    storage: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    keystore: KeystoreStatus


class SecretListResponse(BaseModel):
    secrets: list[str]


class SecretExistsResponse(BaseModel):
    id: str
    exists: bool
