# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.
"""Table builder, entry engine, handler registry and YAML loader."""
