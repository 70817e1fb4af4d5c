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

"""HostedCluster and NodePool activation, upgrade, and teardown tracking.

Provisioning a hosted control plane cluster means clearing ``spec.pausedUntil``
on the HostedCluster and its NodePools; tearing it down starts by setting it
again. NodePools belong to a HostedCluster through ``spec.clusterName``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from rich.panel import Panel

from cluster_curator import console, logger
from cluster_curator.config import CuratorSettings
from cluster_curator.constants import (
    HC_AVAILABLE,
    HC_INFRA_LABEL,
    HOSTED_CLUSTER,
    NODE_POOL,
    NP_READY,
    PAUSED_UNTIL,
    PAUSED_VALUE,
    STATUS_TRUE,
    UPGRADE_COMPLETED,
    ResourceKind,
)
from cluster_curator.errors import NotFoundError
from cluster_curator.kube import ResourceClient
from cluster_curator.polling import poll
from cluster_curator.status import get_curator


# ============================================================================
# Lookups
# ============================================================================

def is_hosted_cluster(resources: ResourceClient, namespace: str, cluster_name: str) -> bool:
    """Return whether a HostedCluster named ``cluster_name`` exists in ``namespace``."""
    try:
        resources.get(HOSTED_CLUSTER, cluster_name, namespace)
    except NotFoundError:
        return False
    return True


def node_pools(resources: ResourceClient, namespace: str, cluster_name: str) -> list[dict[str, Any]]:
    """List the NodePools in ``namespace`` that belong to ``cluster_name``."""
    return [
        pool for pool in resources.list_namespaced(NODE_POOL, namespace)
        if (pool.get("spec") or {}).get("clusterName") == cluster_name
    ]


def condition_true(obj: dict[str, Any], condition_type: str) -> bool:
    for condition in (obj.get("status") or {}).get("conditions") or []:
        if condition.get("type") == condition_type:
            return condition.get("status") == STATUS_TRUE
    return False


def _name(obj: dict[str, Any]) -> str:
    return (obj.get("metadata") or {}).get("name", "")


# ============================================================================
# Pause toggling
# ============================================================================

def _set_paused(resources: ResourceClient, kind: ResourceKind, obj: dict[str, Any], paused: bool) -> bool:
    """Patch ``spec.pausedUntil`` unless it is already in the wanted state.

    Returns:
        True if a patch was sent.
    """
    metadata = obj.get("metadata") or {}
    is_paused = bool((obj.get("spec") or {}).get(PAUSED_UNTIL))
    if is_paused == paused:
        logger.info("%s %s already %s", kind.kind, metadata.get("name"), "paused" if paused else "active")
        return False
    resources.patch(kind, metadata.get("namespace"), metadata.get("name"),
                    {"spec": {PAUSED_UNTIL: PAUSED_VALUE if paused else None}})
    console.print(f"[green]  ✓ {'Paused' if paused else 'Activated'} {kind.kind} {metadata.get('name')}[/green]")
    return True


def _toggle_pause(resources: ResourceClient, namespace: str, cluster_name: str, paused: bool) -> None:
    hosted_cluster = resources.get(HOSTED_CLUSTER, cluster_name, namespace)
    infra_id = ((hosted_cluster.get("metadata") or {}).get("labels") or {}).get(HC_INFRA_LABEL)
    logger.info("HostedCluster %s/%s infra id: %s", namespace, cluster_name, infra_id)

    _set_paused(resources, HOSTED_CLUSTER, hosted_cluster, paused)
    pools = node_pools(resources, namespace, cluster_name)
    if not pools:
        logger.warning("No NodePools found for HostedCluster %s/%s", namespace, cluster_name)
    for pool in pools:
        _set_paused(resources, NODE_POOL, pool, paused)


def activate(resources: ResourceClient, namespace: str, cluster_name: str) -> None:
    """Unpause the HostedCluster and its NodePools.

    Raises:
        NotFoundError: If the HostedCluster does not exist.
    """
    console.print(Panel.fit(f"Activating HostedCluster {namespace}/{cluster_name}", style="bold blue"))
    _toggle_pause(resources, namespace, cluster_name, paused=False)


def deactivate(resources: ResourceClient, namespace: str, cluster_name: str) -> None:
    """Pause the HostedCluster and its NodePools ahead of teardown.

    Raises:
        NotFoundError: If the HostedCluster does not exist.
    """
    console.print(Panel.fit(f"Pausing HostedCluster {namespace}/{cluster_name}", style="bold blue"))
    _toggle_pause(resources, namespace, cluster_name, paused=True)


# ============================================================================
# Outcomes
# ============================================================================

def provisioning_outcome(hosted_cluster: dict[str, Any], pools: list[dict[str, Any]]) -> bool | None:
    """True once the HostedCluster is Available and every NodePool is Ready."""
    if not condition_true(hosted_cluster, HC_AVAILABLE):
        logger.info("HostedCluster %s is not available yet", _name(hosted_cluster))
        return None
    waiting = [_name(pool) for pool in pools if not condition_true(pool, NP_READY)]
    if waiting:
        logger.info("Waiting for NodePools to be ready: %s", ", ".join(waiting))
        return None
    return True


def upgrade_outcome(
    hosted_cluster: dict[str, Any],
    pools: list[dict[str, Any]],
    desired_version: str,
) -> bool | None:
    """True once the HostedCluster and every NodePool report ``desired_version``.

    The HostedCluster's latest version history entry must be ``Completed``.
    """
    history = ((hosted_cluster.get("status") or {}).get("version") or {}).get("history") or []
    latest = history[0] if history else {}
    if latest.get("version") != desired_version or latest.get("state") != UPGRADE_COMPLETED:
        logger.info("HostedCluster %s at %s (%s), waiting for %s",
                    _name(hosted_cluster), latest.get("version"), latest.get("state"), desired_version)
        return None
    waiting = [_name(pool) for pool in pools if (pool.get("status") or {}).get("version") != desired_version]
    if waiting:
        logger.info("Waiting for NodePools to reach %s: %s", desired_version, ", ".join(waiting))
        return None
    return True


# ============================================================================
# Monitors
# ============================================================================

def _poll_hosted(
    resources: ResourceClient,
    namespace: str,
    cluster_name: str,
    settings: CuratorSettings,
    description: str,
    evaluate: Callable[[], bool | None],
) -> None:
    """Poll with the curator re-resolved first on every attempt.

    Raises:
        NotFoundError: If the curator can no longer be resolved.
    """
    def _check() -> bool | None:
        get_curator(resources, namespace, cluster_name)
        return evaluate()

    poll(_check, interval=settings.hosted_poll_interval, timeout=settings.poll_timeout, description=description)


def monitor_provisioning(resources: ResourceClient, namespace: str, cluster_name: str,
                         settings: CuratorSettings) -> None:
    """Wait for the HostedCluster to become Available and its NodePools Ready.

    Raises:
        NotFoundError: If the curator or the HostedCluster disappears.
    """
    console.print(Panel.fit(f"Monitoring HostedCluster {namespace}/{cluster_name}", style="bold blue"))
    _poll_hosted(
        resources, namespace, cluster_name, settings,
        f"HostedCluster {namespace}/{cluster_name} to become available",
        lambda: provisioning_outcome(
            resources.get(HOSTED_CLUSTER, cluster_name, namespace),
            node_pools(resources, namespace, cluster_name),
        ),
    )
    console.print(f"[green]✅ HostedCluster {namespace}/{cluster_name} is available[/green]")


def monitor_upgrade(resources: ResourceClient, namespace: str, cluster_name: str, desired_version: str,
                    settings: CuratorSettings) -> None:
    """Wait for the HostedCluster and its NodePools to reach ``desired_version``.

    Raises:
        NotFoundError: If the curator or the HostedCluster disappears.
    """
    console.print(Panel.fit(
        f"Monitoring HostedCluster {namespace}/{cluster_name} upgrade to {desired_version}", style="bold blue"))
    _poll_hosted(
        resources, namespace, cluster_name, settings,
        f"HostedCluster {namespace}/{cluster_name} to reach {desired_version}",
        lambda: upgrade_outcome(
            resources.get(HOSTED_CLUSTER, cluster_name, namespace),
            node_pools(resources, namespace, cluster_name),
            desired_version,
        ),
    )
    console.print(f"[green]✅ HostedCluster {namespace}/{cluster_name} upgraded to {desired_version}[/green]")


def monitor_destroy(resources: ResourceClient, namespace: str, cluster_name: str,
                    settings: CuratorSettings) -> None:
    """Wait until the HostedCluster and its NodePools are gone.

    Raises:
        NotFoundError: If the curator can no longer be resolved.
    """
    def _evaluate() -> bool | None:
        remaining = [_name(pool) for pool in node_pools(resources, namespace, cluster_name)]
        if is_hosted_cluster(resources, namespace, cluster_name):
            remaining.insert(0, cluster_name)
        if remaining:
            logger.info("Waiting for teardown of %s", ", ".join(remaining))
            return None
        return True

    console.print(Panel.fit(f"Monitoring HostedCluster {namespace}/{cluster_name} teardown", style="bold blue"))
    _poll_hosted(resources, namespace, cluster_name, settings,
                 f"HostedCluster {namespace}/{cluster_name} teardown", _evaluate)
    console.print(f"[green]✅ HostedCluster {namespace}/{cluster_name} removed[/green]")
