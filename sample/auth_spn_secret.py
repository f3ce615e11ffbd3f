# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""
Example of authenticating with SPN + Secret
Can be expanded to retrieve values from Key Vault or other sources
"""

from azure.identity import ClientSecretCredential

from allowlist_sync import FirewallSync

client_id = "your-client-id"
client_secret = "your-client-secret"
tenant_id = "your-tenant-id"
token_credential = ClientSecretCredential(client_id=client_id, client_secret=client_secret, tenant_id=tenant_id)

# Sample values for FirewallSync parameters
subscription_id = "your-subscription-id"
resource_group_name = "your-resource-group"

# Initialize the FirewallSync object with the required parameters
firewall_sync = FirewallSync(
    tenant_id=tenant_id,
    subscription_id=subscription_id,
    resource_group_name=resource_group_name,
    token_credential=token_credential,
)

# Build agents share one rule, kept pointed at the address of the current agent
firewall_sync.sync(firewall_rule_name="BUILD-AGENT")
