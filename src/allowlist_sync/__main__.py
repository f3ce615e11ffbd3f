# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import sys

from allowlist_sync.cli import main

if __name__ == "__main__":
    sys.exit(main())
