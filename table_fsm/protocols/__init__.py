# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.
"""Descriptor schema and return-code vocabulary."""
