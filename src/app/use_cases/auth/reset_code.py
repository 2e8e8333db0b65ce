"""
Reset code generation.

Codes are 6 decimal digits drawn from the OS CSPRNG.
"""

import secrets

RESET_CODE_LENGTH = 6
_RESET_CODE_SPACE = 10**RESET_CODE_LENGTH


def generate_reset_code() -> str:
    """Uniformly random code in 000000-999999, zero-padded"""
    return str(secrets.randbelow(_RESET_CODE_SPACE)).zfill(RESET_CODE_LENGTH)
