"""Cache key derivation.

Keys are plain text so they stay readable in redis-cli.
"""

PHONE_KEY_PREFIX = "ph:"
SUBMISSION_KEY_PREFIX = "sub:"


def phone_key(e164_phone: str | None) -> str | None:
    """Key for a canonical phone number. Only pass output of to_e164()."""
    if not e164_phone:
        return None
    return f"{PHONE_KEY_PREFIX}{e164_phone}"


def submission_key(submission_id: str | None) -> str | None:
    """Key for a form submission identifier."""
    if submission_id is None:
        return None
    submission_id = str(submission_id).strip()
    if not submission_id:
        return None
    return f"{SUBMISSION_KEY_PREFIX}{submission_id}"
