"""Decode e-mail addresses hidden by the CDN's e-mail protection.

The CDN rewrites every address in a page into an anchor such as::

    <a href="/cdn-cgi/l/email-protection" class="__cf_email__"
       data-cfemail="54213b3a...">[email&nbsp;protected]</a>

The hex payload is the address XOR-ed with its first byte.
"""
from __future__ import annotations

import re
from typing import List

# The serializer writes &nbsp; back as a literal U+00A0, so accept all spellings.
CF_ANCHOR_RE = re.compile(r"<a ([^>]+?)>\[email(?:&nbsp;|&#160;|\xa0)protected\]</a>")
CF_PAYLOAD_RE = re.compile(r'data-cfemail="([0-9A-Fa-f]+)"')


def decode_cfemail(payload: str) -> str:
    """Decode a data-cfemail hex payload into the plain address.

    Raises ValueError for invalid hex, payloads shorter than two bytes or
    output that is not UTF-8.
    """
    data = bytes.fromhex(payload)
    if len(data) < 2:
        raise ValueError("cfemail payload too short")
    key = data[0]
    return bytes(b ^ key for b in data[1:]).decode("utf-8")


def deobfuscate_emails(text: str) -> str:
    """Replace every protected e-mail anchor in text with the decoded address.

    Anchors without a usable payload are left untouched.
    """
    parts: List[str] = []
    pos = 0
    for m in CF_ANCHOR_RE.finditer(text):
        payload = CF_PAYLOAD_RE.search(m.group(1))
        if not payload:
            continue
        try:
            address = decode_cfemail(payload.group(1))
        except ValueError:
            continue
        parts.append(text[pos:m.start()])
        parts.append(address)
        pos = m.end()
    if not parts:
        return text
    parts.append(text[pos:])
    return "".join(parts)
