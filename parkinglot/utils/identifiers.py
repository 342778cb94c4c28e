import uuid


def generate_id(prefix: str, length: int = 12) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:length].upper()}"


def normalize_plate(value: str | None) -> str:
    return (value or "").strip().upper()
