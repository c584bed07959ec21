"""Login eligibility derived from an account's moderation flags."""

from enum import Enum

from accounts.models import Account


class ModerationFlag(str, Enum):
    """Moderation flags an administrator can set or clear on an account."""

    BANNED = "banned"
    DISABLED = "disabled"


def is_eligible_to_authenticate(account: Account) -> bool:
    """True only when the account is neither banned nor disabled.

    Checked at login time; tokens issued earlier are not affected.
    """
    return not account.banned and not account.disabled
