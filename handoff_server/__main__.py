#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""Allow ``python -m handoff_server``."""

import sys

from handoff_server.cli import main

sys.exit(main())
