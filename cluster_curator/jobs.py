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

"""AnsibleJob monitoring."""

from __future__ import annotations

from typing import Any

from cluster_curator import console, logger
from cluster_curator.config import CuratorSettings
from cluster_curator.constants import (
    ANSIBLE_CONDITION_FAILED,
    ANSIBLE_JOB,
    ANSIBLE_RESULT_ERROR,
    ANSIBLE_RESULT_SUCCESSFUL,
    CURRENT_ANSIBLEJOB,
    STATUS_TRUE,
)
from cluster_curator.errors import PlatformError
from cluster_curator.kube import ResourceClient
from cluster_curator.models import CuratorResource
from cluster_curator.polling import poll
from cluster_curator.status import record_current_status_condition


def job_outcome(job: dict[str, Any]) -> bool | None:
    """Evaluate one snapshot of an AnsibleJob.

    The result status and the generic conditions are checked on every call
    because the platform does not always populate both.

    Args:
        job: AnsibleJob object as returned by the API.

    Returns:
        True when the job succeeded, None while it is initializing or running.

    Raises:
        PlatformError: If the result status is ``error`` or a condition reports ``Failed``.
    """
    metadata = job.get("metadata") or {}
    job_ref = f"{metadata.get('namespace')}/{metadata.get('name')}"
    status = job.get("status")
    if not status:
        logger.info("AnsibleJob %s is initializing", job_ref)
        return None

    result = (status.get("ansibleJobResult") or {}).get("status")
    if result is not None:
        logger.debug("Found result status %s", result)
    if result == ANSIBLE_RESULT_SUCCESSFUL:
        return True
    if result == ANSIBLE_RESULT_ERROR:
        raise PlatformError(f"AnsibleJob {job_ref} exited with an error")

    k8s_job = (status.get("k8sJob") or {}).get("namespacedName")
    if k8s_job:
        logger.debug("Ansible Kube Job: %s", k8s_job)

    for condition in status.get("conditions") or []:
        if condition.get("reason") == ANSIBLE_CONDITION_FAILED:
            raise PlatformError(condition.get("message") or f"AnsibleJob {job_ref} failed")

    logger.info("AnsibleJob %s is still running", job_ref)
    return None


def monitor_job(
    resources: ResourceClient,
    job: dict[str, Any],
    curator: CuratorResource,
    settings: CuratorSettings,
) -> None:
    """Poll an AnsibleJob until it succeeds or fails.

    A fetch error is not retried: the job disappearing mid-run is a failure.
    On success the ``current-ansiblejob`` condition is flipped to True.

    Args:
        resources: Resource client.
        job: The created AnsibleJob; only its name and namespace are used.
        curator: Curator whose conditions record progress.
        settings: Poll interval, deadline, and conflict retry bounds.

    Raises:
        PlatformError: If the job reports an error or a Failed condition.
        NotFoundError: If the job disappears.
    """
    metadata = job.get("metadata") or {}
    namespace, name = metadata.get("namespace"), metadata.get("name")
    console.print(f"[yellow]ℹ️  Monitoring AnsibleJob {namespace}/{name}...[/yellow]")

    poll(
        lambda: job_outcome(resources.get(ANSIBLE_JOB, name, namespace)),
        interval=settings.job_poll_interval,
        timeout=settings.poll_timeout,
        description=f"AnsibleJob {namespace}/{name}",
    )

    console.print(f"[green]✅ AnsibleJob {namespace}/{name} finished successfully[/green]")
    record_current_status_condition(
        resources, curator.namespace, curator.name, CURRENT_ANSIBLEJOB, STATUS_TRUE, name, settings)
