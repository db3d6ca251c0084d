"""Confirmation required before the CLI writes to AWS.

The CLI changes subscription filters or Lambda permissions only when
ALLOW_AWS_APPLY is true and APPLY_CONFIRM equals the confirmation phrase of
the loaded configuration (``apply_confirm_phrase``; each environment's YAML
may choose its own). Without them the CLI can only plan. The Lambda handlers
are not guarded; deploying them is the confirmation.
"""
import os
import sys
from typing import List, Optional

from subscription.config import DEFAULT_CONFIRM_PHRASE, SubscribeConfig


def _env_flag_true(val: Optional[str]) -> bool:
    return (val or "").lower() in ("1", "true", "yes")


def missing_confirmations(confirm_phrase: str = DEFAULT_CONFIRM_PHRASE) -> List[str]:
    """Return the ``NAME=value`` settings still needed before writing."""
    missing = []
    if not _env_flag_true(os.getenv("ALLOW_AWS_APPLY")):
        missing.append("ALLOW_AWS_APPLY=1")
    if os.getenv("APPLY_CONFIRM", "") != confirm_phrase:
        missing.append(f"APPLY_CONFIRM={confirm_phrase}")
    return missing


def is_apply_allowed(confirm_phrase: str = DEFAULT_CONFIRM_PHRASE) -> bool:
    return not missing_confirmations(confirm_phrase)


def require_apply_allowed_or_exit(config: SubscribeConfig, action: str) -> None:
    """Exit with code 2 unless writes are confirmed for ``config.environment``."""
    missing = missing_confirmations(config.apply_confirm_phrase)
    if not missing:
        return

    sys.stderr.write(f"ERROR: Refusing to {action} in environment '{config.environment}'.\n")
    sys.stderr.write("Set the following environment variables to allow changes:\n")
    for setting in missing:
        sys.stderr.write(f"  {setting}\n")
    sys.stderr.write("Run `log-auto-subscribe plan` to preview changes.\n")
    sys.exit(2)
