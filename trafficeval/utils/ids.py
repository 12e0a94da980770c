from __future__ import annotations

import base64
import uuid


def new_base64_uuid() -> str:
    """Return a 22-character URL-safe Base64-encoded UUID4 without padding."""
    return base64.urlsafe_b64encode(uuid.uuid4().bytes)[:-2].decode("ascii")
