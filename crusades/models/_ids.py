import uuid


def new_id() -> str:
    """Opaque 32-char hex identifier for document-style rows."""
    return uuid.uuid4().hex
