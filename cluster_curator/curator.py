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

"""
curator.py - Operation dispatcher for one curation attempt.

Lifecycle keywords (install, upgrade-cluster, destroy-cluster) run
prehooks, then provisioning or teardown, then posthooks. The remaining
keywords each run a single step so a job pipeline can chain them.

A curator whose ``operation.retryPosthook`` is set resumes a lifecycle keyword
at that posthook: prehooks and provisioning are skipped.
"""

from __future__ import annotations

from collections.abc import Callable

from rich.panel import Panel

from cluster_curator import console, hypershift, logger
from cluster_curator.config import CuratorSettings
from cluster_curator.constants import (
    CONDITION_CLOUD_PROVIDER,
    CONDITION_HOSTED_DESTROY,
    CONDITION_HOSTED_PROVISION,
    CONDITION_HOSTED_UPGRADE,
    CONDITION_IMPORT,
    CONDITION_POSTHOOK,
    CONDITION_PREHOOK,
    CURATOR_JOB,
    OP_ACTIVATE_AND_MONITOR,
    OP_ANSIBLEJOB,
    OP_APPLY_CLOUD_PROVIDER,
    OP_DESTROY,
    OP_DONE,
    OP_INSTALL,
    OP_MONITOR,
    OP_MONITOR_DESTROY,
    OP_MONITOR_IMPORT,
    OP_MONITOR_UPGRADE,
    OP_POSTHOOK,
    OP_PREHOOK,
    OP_UPGRADE,
    OPERATIONS,
    POSTHOOK,
    PREHOOK,
    REASON_JOB_FAILED,
    REASON_JOB_FINISHED,
    STATUS_FALSE,
    STATUS_TRUE,
)
from cluster_curator.credentials import apply_cloud_provider
from cluster_curator.errors import CuratorError, NotFoundError, UsageError, ValidationError
from cluster_curator.hooks import hook_phase_from_env, run_hooks
from cluster_curator.importer import monitor_import
from cluster_curator.kube import ResourceClient
from cluster_curator.models import CuratorResource, Hook
from cluster_curator.status import (
    get_curator,
    record_condition,
    record_current_status_condition,
    record_curator_job,
    record_resumption_marker,
)

_PHASE_CONDITIONS = {PREHOOK: CONDITION_PREHOOK, POSTHOOK: CONDITION_POSTHOOK}


def usage_error(operation: str) -> UsageError:
    return UsageError(
        f"Invalid Parameter: \"{operation}\"\n"
        f"Command: ./curator [{'|'.join(OPERATIONS)}] <cluster-name>")


class Curation:
    """One curation attempt against a resolved ClusterCurator.

    Each step records its condition as False while running and True once
    finished, so a re-invocation can see how far the previous attempt got.
    A failing step keeps False with reason ``Job_failed`` and the error text.

    Attributes:
        resources: Resource client.
        curator: Curator as read at the start of the attempt.
        settings: Poll, retry, and environment settings.
    """

    def __init__(self, resources: ResourceClient, curator: CuratorResource, settings: CuratorSettings) -> None:
        self.resources = resources
        self.curator = curator
        self.settings = settings

    @property
    def namespace(self) -> str:
        return self.curator.namespace

    @property
    def cluster_name(self) -> str:
        return self.curator.name

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _step(self, condition_type: str, message: str, run: Callable[[], None]) -> None:
        record_current_status_condition(
            self.resources, self.namespace, self.cluster_name, condition_type, STATUS_FALSE,
            f"Executing {message}", self.settings)
        try:
            run()
        except CuratorError as err:
            _record_failure(self.resources, self.namespace, self.cluster_name, condition_type, err, self.settings)
            raise
        record_current_status_condition(
            self.resources, self.namespace, self.cluster_name, condition_type, STATUS_TRUE,
            f"Completed {message}", self.settings)

    def run_phase(self, phase: str, start_at: str | None = None) -> None:
        """Run one hook phase; a failing posthook becomes the resumption marker."""
        on_failure = self._mark_retry if phase == POSTHOOK else None
        self._step(
            _PHASE_CONDITIONS[phase], f"{phase} AnsibleJobs",
            lambda: run_hooks(self.resources, self.curator, phase, self.settings,
                              start_at=start_at, on_failure=on_failure),
        )
        if phase == POSTHOOK and self.curator.retry_posthook:
            record_resumption_marker(self.resources, self.namespace, self.cluster_name, None, self.settings)

    def _mark_retry(self, hook: Hook) -> None:
        console.print(f"[red]❌ Posthook {hook.name} failed, recording it for retry[/red]")
        record_resumption_marker(self.resources, self.namespace, self.cluster_name, hook.name, self.settings)

    def is_hosted(self) -> bool:
        hosted = hypershift.is_hosted_cluster(self.resources, self.namespace, self.cluster_name)
        logger.info("Cluster %s/%s is a %s cluster", self.namespace, self.cluster_name,
                    "hosted" if hosted else "standard")
        return hosted

    def desired_update(self) -> str:
        """Return ``spec.upgrade.desiredUpdate``.

        Raises:
            ValidationError: If it is not set.
        """
        desired = self.curator.spec.upgrade.desired_update
        if not desired:
            raise ValidationError(
                f"ClusterCurator {self.namespace}/{self.cluster_name} has no spec.upgrade.desiredUpdate")
        return desired

    def import_cluster(self) -> None:
        self._step(CONDITION_IMPORT, f"import of ManagedCluster {self.cluster_name}",
                   lambda: monitor_import(self.resources, self.cluster_name, self.settings))

    def provision_hosted(self, activate_first: bool) -> None:
        def _run() -> None:
            if activate_first:
                hypershift.activate(self.resources, self.namespace, self.cluster_name)
            hypershift.monitor_provisioning(self.resources, self.namespace, self.cluster_name, self.settings)

        self._step(CONDITION_HOSTED_PROVISION, f"provisioning of HostedCluster {self.cluster_name}", _run)

    def upgrade_hosted(self, desired: str) -> None:
        self._step(CONDITION_HOSTED_UPGRADE, f"upgrade of HostedCluster {self.cluster_name} to {desired}",
                   lambda: hypershift.monitor_upgrade(
                       self.resources, self.namespace, self.cluster_name, desired, self.settings))

    def destroy_hosted(self, deactivate_first: bool) -> None:
        def _run() -> None:
            if deactivate_first:
                hypershift.deactivate(self.resources, self.namespace, self.cluster_name)
            hypershift.monitor_destroy(self.resources, self.namespace, self.cluster_name, self.settings)

        self._step(CONDITION_HOSTED_DESTROY, f"teardown of HostedCluster {self.cluster_name}", _run)

    def complete(self) -> None:
        record_condition(
            self.resources, self.namespace, self.cluster_name, CURATOR_JOB, STATUS_TRUE,
            REASON_JOB_FINISHED, f"Curation {self.curator.spec.desired_curation} completed", self.settings)
        console.print(f"[green]✅ Curation of {self.namespace}/{self.cluster_name} completed[/green]")

    # ------------------------------------------------------------------
    # Keywords
    # ------------------------------------------------------------------

    def _lifecycle(self, between_hooks: Callable[[], None]) -> None:
        resume_at = self.curator.retry_posthook
        if resume_at:
            console.print(f"[yellow]ℹ️  Resuming posthooks at {resume_at}, "
                          f"skipping prehooks and provisioning[/yellow]")
        else:
            self.run_phase(PREHOOK)
            between_hooks()
        self.run_phase(POSTHOOK, start_at=resume_at)
        self.complete()

    def install(self) -> None:
        def _provision() -> None:
            if self.is_hosted():
                self.provision_hosted(activate_first=True)
            else:
                self.import_cluster()

        self._lifecycle(_provision)

    def upgrade(self) -> None:
        desired = self.desired_update()

        def _provision() -> None:
            if self.is_hosted():
                self.upgrade_hosted(desired)
            else:
                self.import_cluster()

        self._lifecycle(_provision)

    def destroy(self) -> None:
        def _teardown() -> None:
            if self.is_hosted():
                self.destroy_hosted(deactivate_first=True)
            else:
                logger.info("Standard cluster %s is removed by the hub, no teardown to monitor",
                            self.cluster_name)

        self._lifecycle(_teardown)

    def monitor(self) -> None:
        self.provision_hosted(activate_first=False)

    def activate_and_monitor(self) -> None:
        self.provision_hosted(activate_first=True)

    def monitor_destroy(self) -> None:
        self.destroy_hosted(deactivate_first=False)

    def monitor_upgrade(self) -> None:
        self.upgrade_hosted(self.desired_update())

    def prehook(self) -> None:
        self.run_phase(PREHOOK)

    def posthook(self) -> None:
        self.run_phase(POSTHOOK)

    def ansiblejob(self) -> None:
        self.run_phase(hook_phase_from_env(self.settings))

    def apply_cloud_provider(self) -> None:
        self._step(CONDITION_CLOUD_PROVIDER, "Tower credential copy",
                   lambda: apply_cloud_provider(self.resources, self.namespace, self.settings))


_KEYWORDS: dict[str, Callable[[Curation], None]] = {
    OP_INSTALL: Curation.install,
    OP_UPGRADE: Curation.upgrade,
    OP_DESTROY: Curation.destroy,
    OP_MONITOR: Curation.monitor,
    OP_MONITOR_IMPORT: Curation.import_cluster,
    OP_MONITOR_DESTROY: Curation.monitor_destroy,
    OP_ACTIVATE_AND_MONITOR: Curation.activate_and_monitor,
    OP_MONITOR_UPGRADE: Curation.monitor_upgrade,
    OP_DONE: Curation.complete,
    OP_PREHOOK: Curation.prehook,
    OP_POSTHOOK: Curation.posthook,
    OP_ANSIBLEJOB: Curation.ansiblejob,
    OP_APPLY_CLOUD_PROVIDER: Curation.apply_cloud_provider,
}


def curator_run(
    operation: str,
    resources: ResourceClient,
    namespace: str,
    cluster_name: str,
    settings: CuratorSettings,
) -> None:
    """Run one curation keyword against the ClusterCurator ``namespace/cluster_name``.

    Args:
        operation: Operation keyword.
        resources: Resource client.
        namespace: Curator and cluster namespace.
        cluster_name: Curator name, equal to the cluster name.
        settings: Poll, retry, and environment settings.

    Raises:
        UsageError: If the keyword is unknown; nothing has been read yet.
        NotFoundError: If the curator does not exist.
        ValidationError: If the curator does not parse; ``clustercurator-job``
            is set to False first.
        CuratorError: Any failure of the step; ``clustercurator-job`` is set
            to False with the error message first.
    """
    step = _KEYWORDS.get(operation)
    if step is None:
        raise usage_error(operation)

    try:
        curator = get_curator(resources, namespace, cluster_name)
    except NotFoundError:
        raise
    except CuratorError as err:
        _record_failure(resources, namespace, cluster_name, CURATOR_JOB, err, settings)
        raise
    console.print(Panel.fit(
        f"Curator {operation} for {namespace}/{cluster_name} "
        f"(desiredCuration: {curator.spec.desired_curation})", style="bold blue"))

    try:
        if settings.job_name:
            record_curator_job(resources, namespace, cluster_name, settings.job_name, settings)
        step(Curation(resources, curator, settings))
    except CuratorError as err:
        _record_failure(resources, namespace, cluster_name, CURATOR_JOB, err, settings)
        raise
    logger.info("Operation %s finished for %s/%s", operation, namespace, cluster_name)


def _record_failure(
    resources: ResourceClient,
    namespace: str,
    cluster_name: str,
    condition_type: str,
    err: CuratorError,
    settings: CuratorSettings,
) -> None:
    """Set ``condition_type`` to False/Job_failed; a failed write is only logged."""
    try:
        record_condition(resources, namespace, cluster_name, condition_type, STATUS_FALSE,
                         REASON_JOB_FAILED, str(err), settings)
    except CuratorError as write_err:
        logger.warning("Could not record %s failure on ClusterCurator %s/%s: %s",
                       condition_type, namespace, cluster_name, write_err)
