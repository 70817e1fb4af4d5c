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

"""ClusterCurator models parsed from custom object dicts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, JsonValue
from pydantic import ValidationError as PydanticValidationError

from cluster_curator.constants import CURATION_TYPES, POSTHOOK, PREHOOK
from cluster_curator.errors import ValidationError, model_validation_error


class _CuratorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Hook(_CuratorModel):
    """One Tower job template invocation.

    Attributes:
        name: Tower job template name.
        extra_vars: Variables passed to the template, merged with cluster context.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    name: str
    extra_vars: dict[str, JsonValue] = Field(default_factory=dict)


class Hooks(_CuratorModel):
    """Prehook and posthook lists for one curation type."""

    prehook: list[Hook] = Field(default_factory=list)
    posthook: list[Hook] = Field(default_factory=list)
    tower_auth_secret: str | None = Field(default=None, alias="towerAuthSecret")

    def for_phase(self, phase: str) -> list[Hook]:
        return self.posthook if phase == POSTHOOK else self.prehook


class UpgradeHooks(Hooks):
    desired_update: str | None = Field(default=None, alias="desiredUpdate")
    channel: str | None = None
    upstream: str | None = None


class CuratorSpec(_CuratorModel):
    desired_curation: str | None = Field(default=None, alias="desiredCuration")
    install: Hooks = Field(default_factory=Hooks)
    upgrade: UpgradeHooks = Field(default_factory=UpgradeHooks)
    scale: Hooks = Field(default_factory=Hooks)
    destroy: Hooks = Field(default_factory=Hooks)
    curator_job: str | None = Field(default=None, alias="curatorJob")


class Operation(_CuratorModel):
    retry_posthook: str | None = Field(default=None, alias="retryPosthook")


class Condition(_CuratorModel):
    """Type-keyed status entry; only the latest value per type is kept."""

    type: str
    status: Literal["True", "False", "Unknown"]
    reason: str = ""
    message: str = ""
    last_transition_time: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        alias="lastTransitionTime",
    )


class CuratorResource(_CuratorModel):
    """A ClusterCurator as read from the API server.

    Attributes:
        name: Curator name, equal to the cluster name.
        namespace: Curator namespace.
        resource_version: ``metadata.resourceVersion`` of the read.
        spec: Requested curation and its hook lists.
        operation: Resumption marker, or None for a fresh curation.
        conditions: Current ``status.conditions``.
    """

    name: str
    namespace: str
    resource_version: str | None = None
    spec: CuratorSpec = Field(default_factory=CuratorSpec)
    operation: Operation | None = None
    conditions: list[Condition] = Field(default_factory=list)

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> CuratorResource:
        """Parse a ClusterCurator custom object.

        Raises:
            ValidationError: If the object does not match the curator schema.
        """
        metadata = obj.get("metadata") or {}
        try:
            return cls(
                name=metadata.get("name", ""),
                namespace=metadata.get("namespace", ""),
                resource_version=metadata.get("resourceVersion"),
                spec=obj.get("spec") or {},
                operation=obj.get("operation"),
                conditions=(obj.get("status") or {}).get("conditions") or [],
            )
        except PydanticValidationError as err:
            raise model_validation_error(
                f"ClusterCurator {metadata.get('namespace')}/{metadata.get('name')}", err) from err

    @property
    def retry_posthook(self) -> str | None:
        return self.operation.retry_posthook if self.operation else None

    def hooks(self) -> Hooks:
        """Return the hook block selected by ``spec.desiredCuration``.

        Raises:
            ValidationError: If the desired curation is missing or unsupported.
        """
        curation = self.spec.desired_curation
        if curation not in CURATION_TYPES:
            raise ValidationError(f"The spec.desiredCuration value is not supported: {curation!r}")
        return getattr(self.spec, curation)

    def hooks_for(self, phase: str) -> list[Hook]:
        if phase not in (PREHOOK, POSTHOOK):
            raise ValidationError(f"Unknown hook phase {phase!r}, use \"prehook\" or \"posthook\"")
        return self.hooks().for_phase(phase)

    def condition(self, condition_type: str) -> Condition | None:
        return next((c for c in self.conditions if c.type == condition_type), None)
