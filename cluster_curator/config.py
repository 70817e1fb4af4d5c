# /*
# Copyright 2026 The Cluster Curator Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Curator settings and environment-provided values."""

from __future__ import annotations

from pydantic import Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from cluster_curator.constants import (
    DEFAULT_CONFLICT_RETRIES,
    DEFAULT_CONFLICT_RETRY_WAIT,
    DEFAULT_HOSTED_POLL_INTERVAL,
    DEFAULT_IMPORT_POLL_INTERVAL,
    DEFAULT_JOB_POLL_INTERVAL,
)
from cluster_curator.errors import ValidationError, model_validation_error


class CuratorSettings(BaseSettings):
    """Curation settings, auto-loaded from CURATOR_* env vars.

    ``JOB_TYPE`` and ``PROVIDER_CREDENTIAL_PATH`` keep their unprefixed names
    because the curator job spec sets them directly.

    Attributes:
        job_type: Hook phase selector for the generic hook keyword.
        provider_credential_path: ``namespace/secretName`` of the Tower credentials.
        cluster_name: Default cluster name when the CLI omits it.
        cluster_namespace: Default namespace, falls back to the cluster name.
        job_name: Name of the job running this curation, recorded on the curator.
        job_poll_interval: Seconds between AnsibleJob polls.
        import_poll_interval: Seconds between ManagedCluster polls.
        hosted_poll_interval: Seconds between HostedCluster/NodePool polls.
        poll_timeout: Deadline in seconds for every poll loop, or None for no deadline.
        conflict_retries: Attempts for a status write that keeps hitting conflicts.
        conflict_retry_wait: Seconds between conflict retries.
        log_level: Root logging level.
    """

    model_config = SettingsConfigDict(env_prefix="CURATOR_", extra="ignore", populate_by_name=True)

    job_type: str | None = Field(default=None, validation_alias="JOB_TYPE")
    provider_credential_path: str | None = Field(default=None, validation_alias="PROVIDER_CREDENTIAL_PATH")
    cluster_name: str | None = None
    cluster_namespace: str | None = None
    job_name: str | None = None
    job_poll_interval: float = Field(default=DEFAULT_JOB_POLL_INTERVAL, ge=0)
    import_poll_interval: float = Field(default=DEFAULT_IMPORT_POLL_INTERVAL, ge=0)
    hosted_poll_interval: float = Field(default=DEFAULT_HOSTED_POLL_INTERVAL, ge=0)
    poll_timeout: float | None = Field(default=None, ge=0)
    conflict_retries: int = Field(default=DEFAULT_CONFLICT_RETRIES, ge=1, le=20)
    conflict_retry_wait: float = Field(default=DEFAULT_CONFLICT_RETRY_WAIT, ge=0)
    log_level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def split_credential_path(path: str | None) -> tuple[str, str]:
    """Split a ``namespace/secretName`` credential path.

    Args:
        path: Value of ``PROVIDER_CREDENTIAL_PATH``.

    Returns:
        Tuple of (namespace, secret_name).

    Raises:
        ValidationError: If the path is empty or either segment is missing.
    """
    if not path:
        raise ValidationError("Missing spec.providerCredentialPath")
    parts = path.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValidationError(
            f"Invalid providerCredentialPath \"{path}\", expected namespace/secretName")
    return parts[0], parts[1]


def load_settings(**overrides: object) -> CuratorSettings:
    """Load settings from the environment, then apply command line overrides.

    Raises:
        ValidationError: If an environment value does not parse.
    """
    try:
        settings = CuratorSettings()
    except PydanticValidationError as err:
        raise model_validation_error("Curator settings", err) from err
    return settings.model_copy(update=overrides) if overrides else settings
