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

"""Prehook and posthook execution through AnsibleJob resources."""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any

import yaml
from rich.panel import Panel

from cluster_curator import console, logger
from cluster_curator.config import CuratorSettings
from cluster_curator.constants import (
    ANSIBLE_JOB,
    CLUSTER_DEPLOYMENT,
    CURRENT_ANSIBLEJOB,
    JOB_TYPE_ANNOTATION,
    MACHINE_POOL,
    MACHINE_POOL_SUFFIX,
    PHASES,
    STATUS_FALSE,
)
from cluster_curator.errors import CuratorError, NotFoundError, PlatformError, ValidationError
from cluster_curator.jobs import job_outcome, monitor_job
from cluster_curator.kube import ResourceClient
from cluster_curator.models import CuratorResource, Hook
from cluster_curator.status import get_curator, record_current_status_condition


def hook_phase_from_env(settings: CuratorSettings) -> str:
    """Return the hook phase selected by ``JOB_TYPE``.

    Raises:
        ValidationError: If ``JOB_TYPE`` is neither ``prehook`` nor ``posthook``.
    """
    if settings.job_type not in PHASES:
        raise ValidationError("Missing JOB_TYPE environment parameter, use \"prehook\" or \"posthook\"")
    return settings.job_type


# ============================================================================
# Job description
# ============================================================================

def build_ansible_job(
    phase: str,
    hook: Hook,
    namespace: str,
    tower_auth_secret: str | None,
    context: dict[str, Any],
) -> dict[str, Any]:
    """Build the AnsibleJob manifest for one hook.

    Args:
        phase: ``prehook`` or ``posthook``; prefixes the generated name.
        hook: Hook carrying the template name and its extra_vars.
        namespace: Namespace the job is created in.
        tower_auth_secret: Secret holding the Tower host and token.
        context: Cluster context merged over the hook's extra_vars.

    Returns:
        AnsibleJob resource as a dictionary.
    """
    extra_vars = copy.deepcopy(dict(hook.extra_vars))
    extra_vars.update(context)
    return {
        "apiVersion": ANSIBLE_JOB.api_version,
        "kind": ANSIBLE_JOB.kind,
        "metadata": {
            "generateName": f"{phase}job-",
            "namespace": namespace,
            "annotations": {JOB_TYPE_ANNOTATION: phase},
        },
        "spec": {
            "job_template_name": hook.name,
            "tower_auth_secret": tower_auth_secret,
            "extra_vars": extra_vars,
        },
    }


def fetch_cluster_context(resources: ResourceClient, namespace: str) -> dict[str, Any]:
    """Fetch the ClusterDeployment and worker MachinePool specs for extra_vars.

    Both are required; a job is never created with partial context.

    Raises:
        NotFoundError: If either resource is missing.
    """
    cluster_deployment = resources.get(CLUSTER_DEPLOYMENT, namespace, namespace)
    machine_pool = resources.get(MACHINE_POOL, namespace + MACHINE_POOL_SUFFIX, namespace)
    return {
        "cluster_deployment": cluster_deployment.get("spec"),
        "machine_pool": machine_pool.get("spec"),
    }


# ============================================================================
# Running hooks
# ============================================================================

def find_inflight_job(
    resources: ResourceClient,
    namespace: str,
    name: str,
    phase: str,
    hook: Hook,
) -> dict[str, Any] | None:
    """Return the unfinished job a previous attempt started for ``hook``.

    The curator is re-read so the ``current-ansiblejob`` condition reflects hooks
    finished earlier in this run. The named job is only reused while the
    condition is False and the job still exists without having failed. It must
    also carry the same ``jobtype`` annotation and template.
    """
    current = get_curator(resources, namespace, name).condition(CURRENT_ANSIBLEJOB)
    if current is None or current.status != STATUS_FALSE or not current.message:
        return None
    try:
        job = resources.get(ANSIBLE_JOB, current.message, namespace)
    except NotFoundError:
        logger.info("Previous AnsibleJob %s no longer exists", current.message)
        return None
    annotations = (job.get("metadata") or {}).get("annotations") or {}
    if annotations.get(JOB_TYPE_ANNOTATION) != phase:
        logger.info("Previous AnsibleJob %s is not a %s job", current.message, phase)
        return None
    if (job.get("spec") or {}).get("job_template_name") != hook.name:
        return None
    try:
        job_outcome(job)
    except PlatformError:
        logger.info("Previous AnsibleJob %s failed, starting a new one", current.message)
        return None
    return job


def run_ansible_job(
    resources: ResourceClient,
    curator: CuratorResource,
    phase: str,
    hook: Hook,
    tower_auth_secret: str | None,
) -> dict[str, Any]:
    """Create the AnsibleJob for one hook.

    Raises:
        NotFoundError: If the cluster context cannot be fetched.
        PlatformError: If the API server did not generate a name.
    """
    namespace = curator.namespace
    context = fetch_cluster_context(resources, namespace)
    manifest = build_ansible_job(phase, hook, namespace, tower_auth_secret, context)
    logger.debug("AnsibleJob manifest:\n%s", yaml.safe_dump(manifest, default_flow_style=False))

    console.print(f"[yellow]ℹ️  Creating {phase} AnsibleJob for template {hook.name} in {namespace}...[/yellow]")
    job = resources.create(ANSIBLE_JOB, namespace, manifest)
    if not (job.get("metadata") or {}).get("name"):
        raise PlatformError("Name was not generated")
    console.print(f"[green]✅ Created AnsibleJob {job['metadata']['name']}[/green]")
    return job


def run_hooks(
    resources: ResourceClient,
    curator: CuratorResource,
    phase: str,
    settings: CuratorSettings,
    start_at: str | None = None,
    on_failure: Callable[[Hook], None] | None = None,
) -> None:
    """Run the curator's hooks for one phase, strictly in order.

    Args:
        resources: Resource client.
        curator: Curator selecting the hook list through ``desiredCuration``.
        phase: ``prehook`` or ``posthook``.
        settings: Poll and retry settings.
        start_at: Hook to resume from; earlier hooks are skipped.
        on_failure: Called with the failing hook before its error propagates.

    Raises:
        ValidationError: If the curation type is unsupported or ``start_at`` is unknown.
        PlatformError: If a job fails; later hooks in the phase do not run.
    """
    hooks = curator.hooks_for(phase)
    if start_at is not None:
        names = [hook.name for hook in hooks]
        if start_at not in names:
            raise ValidationError(
                f"Hook \"{start_at}\" is not in the {curator.spec.desired_curation} {phase} list {names}")
        hooks = hooks[names.index(start_at):]
        logger.info("Resuming %s at %s", phase, start_at)

    if not hooks:
        logger.info("No AnsibleJob detected for %s", phase)
        return

    console.print(Panel.fit(f"Running {len(hooks)} {phase} AnsibleJob(s)", style="bold blue"))
    tower_auth_secret = curator.hooks().tower_auth_secret
    for hook in hooks:
        logger.info("Tower job template: %s", hook.name)
        try:
            _run_hook(resources, curator, phase, hook, tower_auth_secret, settings)
        except CuratorError:
            if on_failure is not None:
                on_failure(hook)
            raise


def _run_hook(
    resources: ResourceClient,
    curator: CuratorResource,
    phase: str,
    hook: Hook,
    tower_auth_secret: str | None,
    settings: CuratorSettings,
) -> None:
    job = find_inflight_job(resources, curator.namespace, curator.name, phase, hook)
    if job is not None:
        console.print(f"[yellow]ℹ️  Resuming in-flight AnsibleJob {job['metadata']['name']}[/yellow]")
    else:
        job = run_ansible_job(resources, curator, phase, hook, tower_auth_secret)
        record_current_status_condition(
            resources, curator.namespace, curator.name, CURRENT_ANSIBLEJOB, STATUS_FALSE,
            job["metadata"]["name"], settings)
    monitor_job(resources, job, curator, settings)
