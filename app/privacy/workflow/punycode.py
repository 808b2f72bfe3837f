"""
Email address normalization to the ASCII (punycode) form.

Only the domain is converted, label by label. The local part is left as is.
"""
from __future__ import annotations

import idna


def label_to_punycode(label: str) -> str:
    """Encode one domain label. ASCII labels and labels idna rejects pass through."""
    if not label or label.isascii():
        return label
    try:
        return idna.encode(label, uts46=True).decode("ascii")
    except idna.IDNAError:
        return label


def email_to_punycode(email: str) -> str:
    """``user@exämple.com`` -> ``user@xn--exmple-cua.com``

    Anything that does not look like ``local@domain`` is returned unchanged
    so that form validation can report it.
    """
    if not email:
        return email
    parts = email.strip().split("@")
    if len(parts) != 2:
        return email
    local, domain = parts
    return local + "@" + ".".join(label_to_punycode(label) for label in domain.split("."))
