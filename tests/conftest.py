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

"""Shared fixtures: in-memory Kubernetes APIs and curator builders."""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from cluster_curator.config import CuratorSettings
from cluster_curator.constants import (
    CLUSTER_CURATOR,
    CLUSTER_DEPLOYMENT,
    HOSTED_CLUSTER,
    MACHINE_POOL,
    MANAGED_CLUSTER,
    NODE_POOL,
    ResourceKind,
)
from cluster_curator.kube import ResourceClient
from cluster_curator.polling import CANCEL

CLUSTER = "my-cluster"
NAMESPACE = "my-cluster"


def _merge_patch(target: dict[str, Any], patch: dict[str, Any]) -> None:
    for key, value in patch.items():
        if value is None:
            target.pop(key, None)
        elif isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_patch(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


class FakeCustomObjectsApi:
    """In-memory stand-in for ``kubernetes.client.CustomObjectsApi``.

    Objects are keyed by (plural, namespace, name); cluster-scoped objects use
    a None namespace. ``replace`` keeps the stored status and
    ``replace_status`` only takes the status, like the real subresource split.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str | None, str], dict[str, Any]] = {}
        self.scripts: dict[tuple[str, str | None, str], list[dict[str, Any]]] = {}
        self.on_create: dict[str, Callable[[dict[str, Any]], None]] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.created_keys: list[tuple[str, str | None, str]] = []
        self.conflicts = 0
        self._version = 0
        self._generated = 0

    # -- test helpers --

    def add(self, kind: ResourceKind, obj: dict[str, Any]) -> dict[str, Any]:
        metadata = obj.setdefault("metadata", {})
        self._version += 1
        metadata["resourceVersion"] = str(self._version)
        self.objects[(kind.plural, metadata.get("namespace"), metadata["name"])] = copy.deepcopy(obj)
        return obj

    def stored(self, kind: ResourceKind, name: str, namespace: str | None = None) -> dict[str, Any]:
        return self.objects[(kind.plural, namespace, name)]

    def exists(self, kind: ResourceKind, name: str, namespace: str | None = None) -> bool:
        return (kind.plural, namespace, name) in self.objects

    def remove(self, kind: ResourceKind, name: str, namespace: str | None = None) -> None:
        self.objects.pop((kind.plural, namespace, name), None)

    def script(self, kind: ResourceKind, name: str, namespace: str | None,
               snapshots: list[dict[str, Any] | None]) -> None:
        """Serve ``snapshots`` on successive reads; the last one sticks and None means deleted."""
        self.scripts[(kind.plural, namespace, name)] = [copy.deepcopy(s) for s in snapshots]

    def created(self, kind: ResourceKind) -> list[dict[str, Any]]:
        return [self.objects[key] for key in self.created_keys if key[0] == kind.plural and key in self.objects]

    def count(self, method: str, plural: str | None = None) -> int:
        return sum(1 for m, p, _ in self.calls if m == method and (plural is None or p == plural))

    # -- API surface --

    def _advance(self, key: tuple[str, str | None, str]) -> None:
        script = self.scripts.get(key)
        if not script:
            return
        snapshot = script.pop(0) if len(script) > 1 else script[0]
        if snapshot is None:
            self.objects.pop(key, None)
        else:
            self.objects[key] = copy.deepcopy(snapshot)

    def _lookup(self, plural: str, namespace: str | None, name: str) -> dict[str, Any]:
        key = (plural, namespace, name)
        self._advance(key)
        if key not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        return self.objects[key]

    def get_namespaced_custom_object(self, group, version, namespace, plural, name):
        self.calls.append(("get", plural, name))
        return copy.deepcopy(self._lookup(plural, namespace, name))

    def get_cluster_custom_object(self, group, version, plural, name):
        self.calls.append(("get", plural, name))
        return copy.deepcopy(self._lookup(plural, None, name))

    def list_namespaced_custom_object(self, group, version, namespace, plural):
        self.calls.append(("list", plural, namespace))
        for key in list(self.scripts):
            if key[0] == plural and key[1] == namespace:
                self._advance(key)
        items = [copy.deepcopy(obj) for (p, ns, _), obj in self.objects.items() if p == plural and ns == namespace]
        return {"items": items}

    def create_namespaced_custom_object(self, group, version, namespace, plural, body):
        obj = copy.deepcopy(body)
        metadata = obj.setdefault("metadata", {})
        if not metadata.get("name"):
            self._generated += 1
            metadata["name"] = f"{metadata.get('generateName', '')}{self._generated:05d}"
        metadata["namespace"] = namespace
        self.calls.append(("create", plural, metadata["name"]))
        key = (plural, namespace, metadata["name"])
        if key in self.objects:
            raise ApiException(status=409, reason="AlreadyExists")
        hook = self.on_create.get(plural)
        if hook is not None:
            hook(obj)
        self._version += 1
        metadata["resourceVersion"] = str(self._version)
        self.objects[key] = obj
        self.created_keys.append(key)
        return copy.deepcopy(obj)

    def _check_write(self, plural: str, namespace: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        key = (plural, namespace, name)
        if key not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        if self.conflicts > 0:
            self.conflicts -= 1
            raise ApiException(status=409, reason="Conflict")
        current = self.objects[key]
        sent = (body.get("metadata") or {}).get("resourceVersion")
        if sent is not None and sent != current["metadata"].get("resourceVersion"):
            raise ApiException(status=409, reason="Conflict")
        return current

    def replace_namespaced_custom_object(self, group, version, namespace, plural, name, body):
        self.calls.append(("replace", plural, name))
        current = self._check_write(plural, namespace, name, body)
        obj = copy.deepcopy(body)
        if "status" in current:
            obj["status"] = copy.deepcopy(current["status"])
        else:
            obj.pop("status", None)
        self._version += 1
        obj["metadata"]["resourceVersion"] = str(self._version)
        self.objects[(plural, namespace, name)] = obj
        return copy.deepcopy(obj)

    def replace_namespaced_custom_object_status(self, group, version, namespace, plural, name, body):
        self.calls.append(("replace_status", plural, name))
        current = self._check_write(plural, namespace, name, body)
        current["status"] = copy.deepcopy(body.get("status") or {})
        self._version += 1
        current["metadata"]["resourceVersion"] = str(self._version)
        return copy.deepcopy(current)

    def patch_namespaced_custom_object(self, group, version, namespace, plural, name, body):
        self.calls.append(("patch", plural, name))
        current = self._lookup(plural, namespace, name)
        _merge_patch(current, body)
        self._version += 1
        current["metadata"]["resourceVersion"] = str(self._version)
        return copy.deepcopy(current)


class FakeCoreV1Api:
    """In-memory stand-in for the secret calls of ``kubernetes.client.CoreV1Api``."""

    def __init__(self) -> None:
        self.secrets: dict[tuple[str, str], client.V1Secret] = {}

    def add_secret(self, namespace: str, name: str, data: dict[str, str]) -> None:
        self.secrets[(namespace, name)] = client.V1Secret(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace), data=data)

    def read_namespaced_secret(self, name, namespace):
        if (namespace, name) not in self.secrets:
            raise ApiException(status=404, reason="Not Found")
        return self.secrets[(namespace, name)]

    def create_namespaced_secret(self, namespace, body):
        key = (namespace, body.metadata.name)
        if key in self.secrets:
            raise ApiException(status=409, reason="AlreadyExists")
        self.secrets[key] = body
        return body


# ============================================================================
# Resource builders
# ============================================================================

def make_curator(
    desired: str = "install",
    prehook: list[str] | None = None,
    posthook: list[str] | None = None,
    retry_posthook: str | None = None,
    desired_update: str | None = None,
    conditions: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    hooks = {
        "towerAuthSecret": "toweraccess",
        "prehook": [{"name": n, "extra_vars": {"variable1": "1"}} for n in prehook or []],
        "posthook": [{"name": n, "extra_vars": {"variable1": "2"}} for n in posthook or []],
    }
    if desired == "upgrade" and desired_update:
        hooks["desiredUpdate"] = desired_update
    obj: dict[str, Any] = {
        "apiVersion": CLUSTER_CURATOR.api_version,
        "kind": CLUSTER_CURATOR.kind,
        "metadata": {"name": CLUSTER, "namespace": NAMESPACE},
        "spec": {"desiredCuration": desired, desired: hooks},
    }
    if retry_posthook is not None:
        obj["operation"] = {"retryPosthook": retry_posthook}
    if conditions is not None:
        obj["status"] = {"conditions": conditions}
    return obj


def ansible_status(result: str | None = None, failed_message: str | None = None) -> dict[str, Any]:
    status: dict[str, Any] = {"k8sJob": {"namespacedName": f"{NAMESPACE}/job-xyz"}}
    if result is not None:
        status["ansibleJobResult"] = {"status": result}
    if failed_message is not None:
        status["conditions"] = [{"type": "Running", "reason": "Failed", "message": failed_message}]
    return status


def condition(type_: str, status: str = "True", message: str = "") -> dict[str, Any]:
    return {"type": type_, "status": status, "reason": "", "message": message}


def hosted_cluster(conditions: list[dict[str, Any]] | None = None, paused: bool = True,
                   history: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    obj: dict[str, Any] = {
        "apiVersion": HOSTED_CLUSTER.api_version,
        "kind": HOSTED_CLUSTER.kind,
        "metadata": {
            "name": CLUSTER,
            "namespace": NAMESPACE,
            "labels": {"hypershift.openshift.io/auto-created-for-infra": f"{CLUSTER}-x8k2p"},
        },
        "spec": {"pausedUntil": "true"} if paused else {},
        "status": {"conditions": conditions or []},
    }
    if history is not None:
        obj["status"]["version"] = {"history": history}
    return obj


def node_pool(name: str, cluster_name: str = CLUSTER, ready: bool = False, paused: bool = True,
              version: str | None = None) -> dict[str, Any]:
    obj: dict[str, Any] = {
        "apiVersion": NODE_POOL.api_version,
        "kind": NODE_POOL.kind,
        "metadata": {"name": name, "namespace": NAMESPACE},
        "spec": {"clusterName": cluster_name, **({"pausedUntil": "true"} if paused else {})},
        "status": {"conditions": [condition("Ready", "True" if ready else "False")]},
    }
    if version is not None:
        obj["status"]["version"] = version
    return obj


def managed_cluster(conditions: list[dict[str, Any]] | None) -> dict[str, Any]:
    obj: dict[str, Any] = {
        "apiVersion": MANAGED_CLUSTER.api_version,
        "kind": MANAGED_CLUSTER.kind,
        "metadata": {"name": CLUSTER},
    }
    if conditions is not None:
        obj["status"] = {"conditions": conditions}
    return obj


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def _reset_cancel():
    CANCEL.clear()
    yield
    CANCEL.clear()


@pytest.fixture
def settings() -> CuratorSettings:
    return CuratorSettings(
        job_poll_interval=0,
        import_poll_interval=0,
        hosted_poll_interval=0,
        conflict_retry_wait=0,
        poll_timeout=5,
    )


@pytest.fixture
def custom_api() -> FakeCustomObjectsApi:
    return FakeCustomObjectsApi()


@pytest.fixture
def core_api() -> FakeCoreV1Api:
    return FakeCoreV1Api()


@pytest.fixture
def resources(custom_api: FakeCustomObjectsApi, core_api: FakeCoreV1Api) -> ResourceClient:
    return ResourceClient(custom_api, core_api)


@pytest.fixture
def cluster_context(custom_api: FakeCustomObjectsApi) -> None:
    """ClusterDeployment and worker MachinePool read for hook extra_vars."""
    custom_api.add(CLUSTER_DEPLOYMENT, {
        "metadata": {"name": NAMESPACE, "namespace": NAMESPACE},
        "spec": {"clusterName": CLUSTER, "platform": {"aws": {"region": "us-east-1"}}},
    })
    custom_api.add(MACHINE_POOL, {
        "metadata": {"name": f"{NAMESPACE}-worker", "namespace": NAMESPACE},
        "spec": {"name": "worker", "replicas": 3},
    })


@pytest.fixture
def succeed_jobs(custom_api: FakeCustomObjectsApi) -> None:
    """Every created AnsibleJob reports success on its first poll."""
    custom_api.on_create["ansiblejobs"] = lambda obj: obj.__setitem__("status", ansible_status("successful"))
