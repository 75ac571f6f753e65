# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.
"""Ambient services: configuration, errors, logging, metrics."""
