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

"""Kubernetes API access with ApiException translated to curator errors."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from cluster_curator import logger
from cluster_curator.constants import ResourceKind
from cluster_curator.errors import ConflictError, KubeApiError, NotFoundError


@contextmanager
def api_errors(resource: str, name: str) -> Iterator[None]:
    """Translate ApiException raised inside the block.

    Args:
        resource: Qualified resource name used in messages (e.g. ``secrets``).
        name: Name of the object being accessed.

    Raises:
        NotFoundError: On HTTP 404.
        ConflictError: On HTTP 409.
        KubeApiError: On any other API failure.
    """
    try:
        yield
    except ApiException as err:
        if err.status == 404:
            raise NotFoundError(f"{resource} \"{name}\" not found") from err
        if err.status == 409:
            raise ConflictError(f"{resource} \"{name}\": {err.reason}") from err
        raise KubeApiError(f"{resource} \"{name}\": {err.status} {err.reason}", status=err.status) from err


class ResourceClient:
    """Thin wrapper over the custom objects and core APIs.

    Both APIs are injected so a curation never depends on process-wide client
    state; tests pass in-memory fakes with the same method signatures.
    """

    def __init__(self, custom_api: client.CustomObjectsApi, core_api: client.CoreV1Api | None = None) -> None:
        self.custom_api = custom_api
        self.core_api = core_api

    @classmethod
    def from_environment(cls) -> ResourceClient:
        """Build clients from in-cluster config, falling back to kubeconfig.

        Raises:
            KubeApiError: If neither configuration can be loaded.
        """
        try:
            config.load_incluster_config()
            logger.debug("Loaded in-cluster Kubernetes config")
        except ConfigException:
            try:
                config.load_kube_config()
            except ConfigException as err:
                raise KubeApiError(f"No Kubernetes configuration found: {err}") from err
            logger.debug("Loaded Kubernetes config from kubeconfig")
        return cls(client.CustomObjectsApi(), client.CoreV1Api())

    # ------------------------------------------------------------------
    # Custom objects
    # ------------------------------------------------------------------

    def get(self, kind: ResourceKind, name: str, namespace: str | None = None) -> dict[str, Any]:
        """Get a namespaced object, or a cluster-scoped one when namespace is None."""
        with api_errors(kind.qualified, name):
            if namespace is None:
                return self.custom_api.get_cluster_custom_object(
                    group=kind.group, version=kind.version, plural=kind.plural, name=name)
            return self.custom_api.get_namespaced_custom_object(
                group=kind.group, version=kind.version, namespace=namespace, plural=kind.plural, name=name)

    def list_namespaced(self, kind: ResourceKind, namespace: str) -> list[dict[str, Any]]:
        with api_errors(kind.qualified, namespace):
            result = self.custom_api.list_namespaced_custom_object(
                group=kind.group, version=kind.version, namespace=namespace, plural=kind.plural)
        return result.get("items") or []

    def create(self, kind: ResourceKind, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        metadata = body.get("metadata") or {}
        name = metadata.get("name") or metadata.get("generateName", "")
        with api_errors(kind.qualified, name):
            return self.custom_api.create_namespaced_custom_object(
                group=kind.group, version=kind.version, namespace=namespace, plural=kind.plural, body=body)

    def replace(self, kind: ResourceKind, namespace: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        with api_errors(kind.qualified, name):
            return self.custom_api.replace_namespaced_custom_object(
                group=kind.group, version=kind.version, namespace=namespace, plural=kind.plural,
                name=name, body=body)

    def replace_status(self, kind: ResourceKind, namespace: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        with api_errors(kind.qualified, name):
            return self.custom_api.replace_namespaced_custom_object_status(
                group=kind.group, version=kind.version, namespace=namespace, plural=kind.plural,
                name=name, body=body)

    def patch(self, kind: ResourceKind, namespace: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        """Merge-patch an object; a None value removes the field."""
        with api_errors(kind.qualified, name):
            return self.custom_api.patch_namespaced_custom_object(
                group=kind.group, version=kind.version, namespace=namespace, plural=kind.plural,
                name=name, body=body)

    # ------------------------------------------------------------------
    # Secrets
    # ------------------------------------------------------------------

    def read_secret(self, namespace: str, name: str) -> client.V1Secret:
        with api_errors("secrets", name):
            return self._core().read_namespaced_secret(name=name, namespace=namespace)

    def create_secret(self, namespace: str, body: client.V1Secret) -> client.V1Secret:
        with api_errors("secrets", body.metadata.name):
            return self._core().create_namespaced_secret(namespace=namespace, body=body)

    def _core(self) -> client.CoreV1Api:
        if self.core_api is None:
            raise KubeApiError("Core API client is not configured")
        return self.core_api
