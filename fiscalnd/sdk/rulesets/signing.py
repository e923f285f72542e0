"""Ruleset signatures and checksums.

A ruleset is signed over its canonical form: the document minus the
``ruleset_signature`` field, serialised as JSON with sorted keys and compact
separators. The signature is a hex HMAC-SHA-256 keyed by the deployment's
signing secret. Any change to a rule produces a new document (and a new id);
signatures are never patched in place.

Usage:
    from fiscalnd.sdk.rulesets.signing import sign_document, verify_document

    signed = sign_document(document, secret)
    verify_document(signed, secret)  # raises RulesetSignatureInvalid on mismatch
"""

import copy
import hashlib
import hmac
import json
import logging
from typing import Any, Dict

from .errors import RulesetSignatureInvalid

logger = logging.getLogger(__name__)

SIGNATURE_FIELD = "ruleset_signature"
CHECKSUM_FIELD = "checksum"


def canonical_bytes(payload: Dict[str, Any]) -> bytes:
    """Serialise a payload to its canonical signing form."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def unsigned_payload(document: Dict[str, Any]) -> Dict[str, Any]:
    """Return the document without its signature field."""
    return {key: value for key, value in document.items() if key != SIGNATURE_FIELD}


def compute_signature(document: Dict[str, Any], secret: str) -> str:
    """HMAC-SHA-256 over the unsigned canonical payload."""
    return hmac.new(
        secret.encode("utf-8"),
        canonical_bytes(unsigned_payload(document)),
        hashlib.sha256,
    ).hexdigest()


def compute_checksum(document: Dict[str, Any]) -> str:
    """SHA-256 over the document minus both signature and checksum."""
    payload = {
        key: value for key, value in document.items()
        if key not in (SIGNATURE_FIELD, CHECKSUM_FIELD)
    }
    return hashlib.sha256(canonical_bytes(payload)).hexdigest()


def signature_matches(document: Dict[str, Any], secret: str) -> bool:
    """True if the document's signature verifies. Never raises on mismatch."""
    signature = document.get(SIGNATURE_FIELD)
    if not isinstance(signature, str) or not signature:
        return False
    expected = compute_signature(document, secret)
    return hmac.compare_digest(signature, expected)


def verify_document(document: Dict[str, Any], secret: str) -> None:
    """Verify a raw ruleset document.

    Raises:
        RulesetSignatureInvalid: If the signature is missing or does not match
    """
    if not signature_matches(document, secret):
        ruleset_id = str(document.get("id", "<unknown>"))
        logger.warning(f"signature check failed for ruleset {ruleset_id}")
        raise RulesetSignatureInvalid(ruleset_id)


def sign_document(document: Dict[str, Any], secret: str) -> Dict[str, Any]:
    """Return a copy of the document with a fresh checksum and signature.

    The checksum is refreshed first, since it is part of the signed payload.
    """
    signed = copy.deepcopy(document)
    signed[CHECKSUM_FIELD] = compute_checksum(signed)
    signed[SIGNATURE_FIELD] = compute_signature(signed, secret)
    return signed
