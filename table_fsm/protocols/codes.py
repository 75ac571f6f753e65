# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
Handler Return Codes — The vocabulary between handlers and the table.

A handler returns a small integer; the rule's next-state mapping turns
it into the next state. Codes live in [EXIT_OK, EXIT_END].
"""

EXIT_OK = 0        # Success
EXIT_FAIL = 1      # Failure
EXIT_START = 2     # Success, first caller-defined code
EXIT_END = 127     # Success, last caller-defined code


def is_valid_return_code(code: int) -> bool:
    """Check that a code falls in the permitted [0, 127] range."""
    return isinstance(code, int) and EXIT_OK <= code <= EXIT_END
