# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

from allowlist_sync._resources._base_firewall import ResourceFirewall
from allowlist_sync._resources._sql_server import SqlServerFirewall
from allowlist_sync._resources._synapse_workspace import SynapseWorkspaceFirewall

# Sync order: workspaces first, then SQL servers
RESOURCE_FIREWALLS = (SynapseWorkspaceFirewall, SqlServerFirewall)

__all__ = [
    "RESOURCE_FIREWALLS",
    "ResourceFirewall",
    "SqlServerFirewall",
    "SynapseWorkspaceFirewall",
]
