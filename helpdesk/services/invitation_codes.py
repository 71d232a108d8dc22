import logging
import secrets
from typing import Callable

from ..core.errors import ExhaustedRetries

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
DEFAULT_MAX_ATTEMPTS = 10


def generate_invitation_code() -> str:
    """Random 6-digit code in [100000, 999999], never with a leading zero."""
    return str(100000 + secrets.randbelow(900000))


def is_valid_code(code) -> bool:
    return (
        isinstance(code, str)
        and len(code) == CODE_LENGTH
        and all(c in "0123456789" for c in code)
    )


def try_generate_unique(
    exists: Callable[[str], bool],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    generate: Callable[[], str] = generate_invitation_code
) -> str:
    """
    Generate codes until ``exists`` reports one as free.

    Args:
        exists: Returns True when a code is already taken
        max_attempts: Upper bound on generate-then-check cycles
        generate: Code source, replaceable for tests

    Returns:
        The first code for which ``exists`` returned False

    Raises:
        ExhaustedRetries: If every attempt produced a taken code
    """
    for attempt in range(1, max_attempts + 1):
        code = generate()
        if not exists(code):
            return code
        logger.warning(f"Invitation code collision on attempt {attempt}/{max_attempts}")

    raise ExhaustedRetries()
