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

"""Conflict-safe writes of ClusterCurator conditions and progress markers.

Every write fetches the curator, applies a change to the fetched object, and
replaces it with the fetched ``resourceVersion``. A 409 restarts the whole
read-modify-write; the number of attempts is bounded by
``CuratorSettings.conflict_retries``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from cluster_curator import logger
from cluster_curator.config import CuratorSettings
from cluster_curator.constants import (
    CLUSTER_CURATOR,
    OPERATION_RETRY_POSTHOOK,
    REASON_EXECUTING,
    REASON_JOB_FINISHED,
    SPEC_CURATOR_JOB,
    STATUS_TRUE,
)
from cluster_curator.errors import ConflictError
from cluster_curator.kube import ResourceClient
from cluster_curator.models import Condition, CuratorResource


def get_curator(resources: ResourceClient, namespace: str, name: str) -> CuratorResource:
    """Read and parse a ClusterCurator.

    Raises:
        NotFoundError: If the curator does not exist.
    """
    return CuratorResource.from_object(resources.get(CLUSTER_CURATOR, name, namespace))


def _update(
    resources: ResourceClient,
    namespace: str,
    name: str,
    mutate: Callable[[dict[str, Any]], None],
    settings: CuratorSettings,
    *,
    status: bool,
) -> None:
    """Run one read-modify-write of the curator, retrying on conflict.

    Args:
        resources: Resource client.
        namespace: Curator namespace.
        name: Curator name.
        mutate: Applies the change to the fetched object in place.
        settings: Supplies the conflict retry bounds.
        status: Write through the status subresource instead of the main resource.

    Raises:
        NotFoundError: If the curator does not exist.
        ConflictError: If every attempt conflicted.
    """
    def _attempt() -> None:
        obj = resources.get(CLUSTER_CURATOR, name, namespace)
        mutate(obj)
        if status:
            resources.replace_status(CLUSTER_CURATOR, namespace, name, obj)
        else:
            resources.replace(CLUSTER_CURATOR, namespace, name, obj)

    retrying = Retrying(
        retry=retry_if_exception_type(ConflictError),
        stop=stop_after_attempt(settings.conflict_retries),
        wait=wait_fixed(settings.conflict_retry_wait),
        before_sleep=lambda state: logger.debug(
            "Conflict updating ClusterCurator %s/%s (attempt %d), retrying",
            namespace, name, state.attempt_number),
        reraise=True,
    )
    retrying(_attempt)


def record_condition(
    resources: ResourceClient,
    namespace: str,
    name: str,
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    settings: CuratorSettings,
) -> None:
    """Replace or append the condition of ``condition_type`` on the curator.

    ``lastTransitionTime`` is carried over when the status does not change.
    """
    condition = Condition(type=condition_type, status=status, reason=reason, message=message)

    def _mutate(obj: dict[str, Any]) -> None:
        conditions = obj.setdefault("status", {}).setdefault("conditions", [])
        for idx, existing in enumerate(conditions):
            if existing.get("type") != condition_type:
                continue
            entry = condition.model_dump(by_alias=True)
            if existing.get("status") == status and existing.get("lastTransitionTime"):
                entry["lastTransitionTime"] = existing["lastTransitionTime"]
            conditions[idx] = entry
            return
        conditions.append(condition.model_dump(by_alias=True))

    logger.debug("Recording condition %s=%s (%s) on %s/%s: %s",
                 condition_type, status, reason, namespace, name, message)
    _update(resources, namespace, name, _mutate, settings, status=True)


def record_current_status_condition(
    resources: ResourceClient,
    namespace: str,
    name: str,
    condition_type: str,
    status: str,
    message: str,
    settings: CuratorSettings,
) -> None:
    """Record a progress condition, deriving the reason from its status."""
    reason = REASON_JOB_FINISHED if status == STATUS_TRUE else REASON_EXECUTING
    record_condition(resources, namespace, name, condition_type, status, reason, message, settings)


def record_resumption_marker(
    resources: ResourceClient,
    namespace: str,
    name: str,
    hook_name: str | None,
    settings: CuratorSettings,
) -> None:
    """Set ``operation.retryPosthook`` to ``hook_name``, or clear it with None."""
    def _mutate(obj: dict[str, Any]) -> None:
        if hook_name is None:
            operation = obj.get("operation")
            if operation:
                operation.pop(OPERATION_RETRY_POSTHOOK, None)
            return
        obj.setdefault("operation", {})[OPERATION_RETRY_POSTHOOK] = hook_name

    logger.info("Setting %s on %s/%s to %s", OPERATION_RETRY_POSTHOOK, namespace, name, hook_name)
    _update(resources, namespace, name, _mutate, settings, status=False)


def record_curator_job(
    resources: ResourceClient,
    namespace: str,
    name: str,
    job_name: str,
    settings: CuratorSettings,
) -> None:
    """Write the running curation job's name to ``spec.curatorJob``."""
    def _mutate(obj: dict[str, Any]) -> None:
        obj.setdefault("spec", {})[SPEC_CURATOR_JOB] = job_name

    _update(resources, namespace, name, _mutate, settings, status=False)
