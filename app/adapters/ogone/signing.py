"""SHA signature ("SHASign") for Ogone DirectLink requests."""

import hashlib
from typing import Mapping

DIGESTS = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
    "sha512": hashlib.sha512,
}

DEFAULT_DIGEST = "sha1"

# Field order of the pre-May-2010 signature; the processor checks it verbatim.
LEGACY_SIGNED_FIELDS = (
    "orderID",
    "amount",
    "currency",
    "CARDNO",
    "PSPID",
    "Operation",
    "ALIAS",
)


def string_to_digest(
    parameters: Mapping[str, str],
    secret: str,
    created_after_10_may_2010: bool = False,
) -> str:
    """Build the canonical string that is hashed into the signature."""
    if created_after_10_may_2010:
        ordered = sorted(parameters.items(), key=lambda item: item[0].upper())
        body = secret.join(f"{key.upper()}={value}" for key, value in ordered)
    else:
        body = "".join(parameters.get(key, "") for key in LEGACY_SIGNED_FIELDS)
    return body + secret


def compute_signature(
    parameters: Mapping[str, str],
    secret: str,
    encryptor: str = DEFAULT_DIGEST,
    created_after_10_may_2010: bool = False,
) -> str:
    digest = DIGESTS[encryptor]
    canonical = string_to_digest(parameters, secret, created_after_10_may_2010)
    return digest(canonical.encode("utf-8")).hexdigest().upper()
