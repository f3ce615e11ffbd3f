# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

# The following is intended for developers of allowlist-sync to debug locally against the github repo

import sys
from pathlib import Path

from azure.identity import ClientSecretCredential

root_directory = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(root_directory / "src"))

from allowlist_sync import (
    FirewallSync,
    append_feature_flag,
    change_log_level,
    constants,
)

# Uncomment to enable debug
# change_log_level()

# Uncomment to add feature flag
# append_feature_flag("disable_print_identity")

tenant_id = "your-tenant-id"
subscription_id = "your-subscription-id"
resource_group_name = "rg-allowlist-sync-debug"

# Uncomment to use SPN auth
# client_id = "your-client-id"
# client_secret = "your-client-secret"
# token_credential = ClientSecretCredential(client_id=client_id, client_secret=client_secret, tenant_id=tenant_id)

# Uncomment to use another lookup service
# constants.IP_LOOKUP_URL = "https://ifconfig.me/ip"

# Initialize the FirewallSync object with the required parameters
firewall_sync = FirewallSync(
    tenant_id=tenant_id,
    subscription_id=subscription_id,
    resource_group_name=resource_group_name,
    # Uncomment to use SPN auth
    # token_credential=token_credential,
)

# Uncomment to sync with an explicit rule name and address
# firewall_sync.sync(firewall_rule_name="DEBUG", client_ip_address="203.0.113.10")

firewall_sync.sync()
