"""
Push payload construction.

Encrypts a push message for one subscription (RFC 8291, aes128gcm) with
pywebpush and signs the VAPID Authorization header with py_vapid.  Nothing is
sent here — submission happens in the dispatch service so that building and
delivering can be run as separate concurrent stages.
"""

import copy
import json
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any
from urllib.parse import urlparse

from py_vapid import Vapid02
from pywebpush import WebPusher

CONTENT_ENCODING = "aes128gcm"
VAPID_EXPIRY_SECONDS = 12 * 60 * 60


@dataclass
class PushPayload:
    endpoint: str
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)
    record_id: str | None = None


@lru_cache(maxsize=8)
def _load_vapid(private_key: str) -> Vapid02:
    return Vapid02.from_string(private_key=private_key)


def vapid_headers(endpoint: str, *, private_key: str, claims_email: str) -> dict[str, str]:
    """Sign VAPID claims scoped to the push service origin of endpoint."""
    url = urlparse(endpoint)
    claims = {
        "sub": claims_email,
        "aud": f"{url.scheme}://{url.netloc}",
        "exp": int(time.time()) + VAPID_EXPIRY_SECONDS,
    }
    return dict(_load_vapid(private_key).sign(claims))


def build_push_payload(
    message: dict[str, Any],
    subscription: dict[str, Any],
    *,
    vapid_private_key: str,
    vapid_claims_email: str,
    ttl: int,
    record_id: str | None = None,
) -> PushPayload:
    """Encrypt and sign message for a single subscription.

    Raises WebPushException, ValueError or binascii.Error when the
    subscription or key material is malformed.
    """
    # WebPusher rewrites the keys in place (str -> bytes)
    pusher = WebPusher(copy.deepcopy(subscription))
    encoded = pusher.encode(json.dumps(message).encode("utf-8"), content_encoding=CONTENT_ENCODING)

    endpoint = subscription["endpoint"]
    headers = vapid_headers(endpoint, private_key=vapid_private_key, claims_email=vapid_claims_email)
    headers.update(
        {
            "Content-Encoding": CONTENT_ENCODING,
            "Content-Type": "application/octet-stream",
            "TTL": str(ttl),
        }
    )
    return PushPayload(endpoint=endpoint, body=encoded["body"], headers=headers, record_id=record_id)
