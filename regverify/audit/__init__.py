"""
RegVerify — Audit Evaluator

Field-level checks for a verification request. Every check runs; the
request is valid only when all four pass:
  1. ownerName      — text, longer than 2 characters once trimmed
  2. ownerEmail     — text containing "@" (syntactic hint, not validation)
  3. ownerPhone     — text with at least 7 digits
  4. documentExists — proof document resolved and found in the blob store
"""
import re
from typing import Union

from regverify.config import MIN_OWNER_NAME_LENGTH, MIN_PHONE_DIGITS
from regverify.documents import ProbeResult

REQUIRED_CHECKS = ("ownerName", "ownerEmail", "ownerPhone", "documentExists")


def check_owner_name(value) -> bool:
    return isinstance(value, str) and len(value.strip()) > MIN_OWNER_NAME_LENGTH


def check_owner_email(value) -> bool:
    return isinstance(value, str) and "@" in value


def check_owner_phone(value) -> bool:
    return isinstance(value, str) and len(re.sub(r"\D", "", value)) >= MIN_PHONE_DIGITS


def _size(value) -> Union[int, float]:
    try:
        n = float(value or 0)
    except (TypeError, ValueError):
        return 0
    return int(n) if n.is_integer() else n


def evaluate_request(data: dict, probe: ProbeResult) -> dict:
    """Build the audit body (checks, valid, error) for one request."""
    data = data or {}
    checks = {
        "ownerName": check_owner_name(data.get("ownerName", "")),
        "ownerEmail": check_owner_email(data.get("ownerEmail", "")),
        "ownerPhone": check_owner_phone(data.get("ownerPhone", "")),
        "documentExists": probe.exists,
    }
    if probe.exists:
        checks["documentSize"] = _size(probe.size)

    audit = {"checks": checks, "valid": all(checks[name] for name in REQUIRED_CHECKS)}
    if probe.error:
        audit["error"] = probe.error
    return audit
