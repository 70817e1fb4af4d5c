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

"""Resource coordinates, condition vocabulary, and operation keywords."""

from __future__ import annotations

from dataclasses import dataclass

@dataclass(frozen=True)
class ResourceKind:
    """Group/version/plural triple for a custom resource.

    Attributes:
        group: API group (e.g. ``tower.ansible.com``).
        version: API version within the group.
        plural: Plural resource name used in API paths.
        kind: Kind as it appears in manifests.
    """

    group: str
    version: str
    plural: str
    kind: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"

    @property
    def qualified(self) -> str:
        """Resource name as kubectl and the API server print it."""
        return f"{self.plural}.{self.group}"

CLUSTER_CURATOR = ResourceKind("cluster.open-cluster-management.io", "v1beta1", "clustercurators", "ClusterCurator")
ANSIBLE_JOB = ResourceKind("tower.ansible.com", "v1alpha1", "ansiblejobs", "AnsibleJob")
MANAGED_CLUSTER = ResourceKind("cluster.open-cluster-management.io", "v1", "managedclusters", "ManagedCluster")
HOSTED_CLUSTER = ResourceKind("hypershift.openshift.io", "v1beta1", "hostedclusters", "HostedCluster")
NODE_POOL = ResourceKind("hypershift.openshift.io", "v1beta1", "nodepools", "NodePool")
CLUSTER_DEPLOYMENT = ResourceKind("hive.openshift.io", "v1", "clusterdeployments", "ClusterDeployment")
MACHINE_POOL = ResourceKind("hive.openshift.io", "v1", "machinepools", "MachinePool")

# -- Hook phases --
PREHOOK = "prehook"
POSTHOOK = "posthook"
PHASES = (PREHOOK, POSTHOOK)

# -- Curation types --
CURATION_TYPES = ("install", "upgrade", "scale", "destroy")

# -- Operation keywords --
OP_INSTALL = "install"
OP_UPGRADE = "upgrade-cluster"
OP_DESTROY = "destroy-cluster"
OP_MONITOR = "monitor"
OP_MONITOR_IMPORT = "monitor-import"
OP_MONITOR_DESTROY = "monitor-destroy"
OP_ACTIVATE_AND_MONITOR = "activate-and-monitor"
OP_MONITOR_UPGRADE = "monitor-upgrade"
OP_DONE = "done"
OP_PREHOOK = "prehook-ansiblejob"
OP_POSTHOOK = "posthook-ansiblejob"
OP_ANSIBLEJOB = "ansiblejob"
OP_APPLY_CLOUD_PROVIDER = "applycloudprovider-ansible"

OPERATIONS = (
    OP_INSTALL,
    OP_UPGRADE,
    OP_DESTROY,
    OP_MONITOR,
    OP_MONITOR_IMPORT,
    OP_MONITOR_DESTROY,
    OP_ACTIVATE_AND_MONITOR,
    OP_MONITOR_UPGRADE,
    OP_DONE,
    OP_PREHOOK,
    OP_POSTHOOK,
    OP_ANSIBLEJOB,
    OP_APPLY_CLOUD_PROVIDER,
)

# -- Curator condition types --
CURRENT_ANSIBLEJOB = "current-ansiblejob"
CURATOR_JOB = "clustercurator-job"
CONDITION_PREHOOK = "prehook-ansiblejob"
CONDITION_POSTHOOK = "posthook-ansiblejob"
CONDITION_IMPORT = "monitor-import"
CONDITION_HOSTED_PROVISION = "hypershift-provisioned"
CONDITION_HOSTED_UPGRADE = "hypershift-upgraded"
CONDITION_HOSTED_DESTROY = "hypershift-destroyed"
CONDITION_CLOUD_PROVIDER = "applycloudprovider-ansible"

# -- Condition statuses and reasons --
STATUS_TRUE = "True"
STATUS_FALSE = "False"

REASON_EXECUTING = "Executing"
REASON_JOB_FINISHED = "Job_has_finished"
REASON_JOB_FAILED = "Job_failed"

# -- Spec-side markers --
SPEC_CURATOR_JOB = "curatorJob"
OPERATION_RETRY_POSTHOOK = "retryPosthook"

# -- AnsibleJob --
ANSIBLE_RESULT_SUCCESSFUL = "successful"
ANSIBLE_RESULT_ERROR = "error"
ANSIBLE_CONDITION_FAILED = "Failed"
JOB_TYPE_ANNOTATION = "jobtype"
MACHINE_POOL_SUFFIX = "-worker"

# -- ManagedCluster condition types --
MC_HUB_DENIED = "HubDeniedManagedCluster"
MC_AVAILABLE = "ManagedClusterConditionAvailable"
MC_JOINED = "ManagedClusterJoined"

# -- HostedCluster / NodePool --
HC_AVAILABLE = "Available"
NP_READY = "Ready"
HC_INFRA_LABEL = "hypershift.openshift.io/auto-created-for-infra"
PAUSED_UNTIL = "pausedUntil"
PAUSED_VALUE = "true"
UPGRADE_COMPLETED = "Completed"

# -- Cloud provider credentials --
TOWER_SECRET_NAME = "toweraccess"
TOWER_SECRET_KEYS = ("host", "token")

# -- Poll defaults (seconds) --
DEFAULT_JOB_POLL_INTERVAL = 5
DEFAULT_IMPORT_POLL_INTERVAL = 10
DEFAULT_HOSTED_POLL_INTERVAL = 10
DEFAULT_CONFLICT_RETRIES = 5
DEFAULT_CONFLICT_RETRY_WAIT = 1
