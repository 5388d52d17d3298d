"""
Interactive Prompts

Terminal input helpers for the command line.
"""

import getpass
from typing import Callable, Optional

from kubexporter.common.logger import get_logger

logger = get_logger(__name__)

KEY_SIZES = (16, 24, 32)


def get_input(prompt: str, default: str = "", password: bool = False,
              validator: Optional[Callable[[str], bool]] = None,
              error_message: str = "Invalid input", required: bool = True,
              attempts: int = 3) -> str:
    """
    Interactive input with validation

    Returns an empty string when the user aborts with Ctrl-C or Ctrl-D, or
    after the given number of invalid attempts.
    """
    logger.debug(f"Requesting input: {prompt}")

    if default:
        display_prompt = f"{prompt} [{default}]: "
    else:
        display_prompt = f"{prompt}: "

    for _ in range(attempts):
        try:
            if password:
                user_input = getpass.getpass(display_prompt)
            else:
                user_input = input(display_prompt)
        except (KeyboardInterrupt, EOFError):
            logger.warning("Input cancelled")
            return ""

        if not user_input.strip():
            if default:
                return default
            if not required:
                return ""
            logger.warning("Input is required")
            continue

        if validator and not validator(user_input.strip()):
            logger.warning(error_message)
            continue

        return user_input.strip()
    return ""


def read_key(prompt: str = "Enter the AES key") -> str:
    """Prompt for an AES key without echo"""
    return get_input(
        prompt,
        password=True,
        validator=lambda k: len(k.encode('utf-8')) in KEY_SIZES,
        error_message="aesKey must be 16, 24 or 32 chars long",
    )
