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

"""ManagedCluster import monitoring."""

from __future__ import annotations

from typing import Any

from rich.panel import Panel

from cluster_curator import console, logger
from cluster_curator.config import CuratorSettings
from cluster_curator.constants import MANAGED_CLUSTER, MC_AVAILABLE, MC_HUB_DENIED, MC_JOINED, STATUS_TRUE
from cluster_curator.errors import PlatformError
from cluster_curator.kube import ResourceClient
from cluster_curator.polling import poll


def _asserted(conditions: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    """Index conditions by type, keeping those asserted True or carrying no status."""
    return {c.get("type"): c for c in conditions if c.get("status", STATUS_TRUE) == STATUS_TRUE}


def import_outcome(managed_cluster: dict[str, Any]) -> bool | None:
    """Evaluate one snapshot of a ManagedCluster.

    Priority is denied > available > joined > anything else, regardless of
    the order the conditions are listed in.

    Returns:
        True once the cluster is available, None to keep polling.

    Raises:
        PlatformError: If the hub denied the join.
    """
    conditions = (managed_cluster.get("status") or {}).get("conditions")
    if not conditions:
        return None

    asserted = _asserted(conditions)
    if MC_HUB_DENIED in asserted:
        message = asserted[MC_HUB_DENIED].get("message")
        raise PlatformError(f"ManagedCluster join denied: {message}" if message else "ManagedCluster join denied")
    if MC_AVAILABLE in asserted:
        return True
    if MC_JOINED in asserted:
        logger.info("ManagedCluster joined but not available")
        return None
    for condition in conditions:
        logger.info("Waiting for ManagedCluster to join: %s", condition.get("message", condition.get("type")))
    return None


def monitor_import(resources: ResourceClient, cluster_name: str, settings: CuratorSettings) -> None:
    """Poll the ManagedCluster until it is available.

    Args:
        resources: Resource client.
        cluster_name: ManagedCluster name (cluster scoped).
        settings: Poll interval and deadline.

    Raises:
        NotFoundError: If the ManagedCluster does not exist.
        PlatformError: If the join is denied.
    """
    console.print(Panel.fit(f"Monitoring ManagedCluster import of {cluster_name}", style="bold blue"))
    poll(
        lambda: import_outcome(resources.get(MANAGED_CLUSTER, cluster_name)),
        interval=settings.import_poll_interval,
        timeout=settings.poll_timeout,
        description=f"ManagedCluster {cluster_name} to become available",
    )
    console.print(f"[green]✅ ManagedCluster {cluster_name} available[/green]")
