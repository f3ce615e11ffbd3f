# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""
Example of syncing with values read from a configuration file
The environment selects the values of any environment mapping in allowlist.yml
"""
# START-EXAMPLE
from pathlib import Path

from allowlist_sync import sync_firewall_rules_with_config

config_file_path = str(Path(__file__).resolve().parent / "allowlist.yml")

sync_firewall_rules_with_config(config_file_path=config_file_path, environment="dev")

# Values can be replaced without editing the file
sync_firewall_rules_with_config(
    config_file_path=config_file_path,
    environment="prod",
    config_override={"core": {"client_ip_address": "203.0.113.10"}},
)
