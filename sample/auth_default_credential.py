# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""
Example of leveraging default authentication flows
DefaultAzureCredential picks up Azure CLI, environment variables or a managed identity
"""
# START-EXAMPLE
from allowlist_sync import sync_firewall_rules

# Sample values for sync_firewall_rules parameters
tenant_id = "your-tenant-id"
subscription_id = "your-subscription-id"
resource_group_name = "your-resource-group"

# Allow the public IP of this machine on every Synapse workspace and SQL server of the resource group.
# The rule is named after the host name of this machine.
results = sync_firewall_rules(
    tenant_id=tenant_id,
    subscription_id=subscription_id,
    resource_group_name=resource_group_name,
)
