"""Immutable configuration for the create and patch flows.

Built once from command-line options and passed explicitly to the service
layer; nothing reads options from module state.
"""

from __future__ import annotations

from typing import Any, Self, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from webhook_certgen.exceptions import InvalidArgumentError
from webhook_certgen.integrations.kubernetes.models.admission import (
    AdmissionRegistrationVersion,
    FailurePolicy,
)


def split_csv(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated option value, dropping empty entries."""
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


class _RunConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    secret_name: str = Field(min_length=1, description="Secret holding the certificates")
    namespace: str = Field(min_length=1, description="Namespace of the Secret")
    ca_name: str = Field(default="ca", min_length=1, description="Secret key of the CA bundle")


class CreateConfig(_RunConfig):
    """Options for generating and storing a new CA, certificate and key."""

    host: str = Field(min_length=1, description="Comma-separated hostnames and IPs")
    cert_name: str = Field(default="cert", min_length=1)
    key_name: str = Field(default="key", min_length=1)

    @model_validator(mode="after")
    def validate_distinct_keys(self) -> Self:
        """Reject key names that would overwrite each other in the Secret."""
        keys = (self.ca_name, self.cert_name, self.key_name)
        if len(set(keys)) != len(keys):
            raise ValueError("ca-name, cert-name and key-name must be distinct")
        return self

    def secret_data(self, ca: bytes, cert: bytes, key: bytes) -> dict[str, bytes]:
        """Map generated material onto the configured Secret keys."""
        return {self.ca_name: ca, self.cert_name: cert, self.key_name: key}


class PatchConfig(_RunConfig):
    """Options for distributing a stored CA bundle."""

    webhook_name: str = Field(min_length=1)
    patch_validating: bool = True
    patch_mutating: bool = True
    failure_policy: FailurePolicy | None = None
    version: AdmissionRegistrationVersion = AdmissionRegistrationVersion.V1
    crds: tuple[str, ...] = ()
    crd_api_groups: tuple[str, ...] = ()

    @field_validator("failure_policy", mode="before")
    @classmethod
    def validate_failure_policy(cls, v: Any) -> FailurePolicy | None:
        """Accept "", Ignore or Fail."""
        return FailurePolicy.parse(v)

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, v: Any) -> AdmissionRegistrationVersion:
        """Accept v1 or v1beta1."""
        return AdmissionRegistrationVersion.parse(v)

    @field_validator("crds", "crd_api_groups", mode="before")
    @classmethod
    def validate_csv(cls, v: Any) -> Any:
        """Split comma-separated strings."""
        if v is None or isinstance(v, str):
            return split_csv(v)
        return v

    @model_validator(mode="after")
    def validate_webhook_kinds(self) -> Self:
        """At least one webhook kind must be patched."""
        if not self.patch_validating and not self.patch_mutating:
            raise ValueError(
                "patch-validating=false, patch-mutating=false. You must patch at least "
                "one kind of webhook, otherwise this command is a no-op"
            )
        return self

    @property
    def patches_crds(self) -> bool:
        """Whether any CRD selection was given."""
        return bool(self.crds or self.crd_api_groups)


ConfigT = TypeVar("ConfigT", bound=BaseModel)


def build_config(model: type[ConfigT], **values: Any) -> ConfigT:
    """Validate options into a config model.

    Raises:
        InvalidArgumentError: With the first validation failure.
    """
    try:
        return model.model_validate(values)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        message = first["msg"].removeprefix("Value error, ")
        raise InvalidArgumentError(message, argument=field) from e
