"""Security helpers: secret masking for safe logging (minimal)."""


def mask_secret(value: str, visible: int = 6) -> str:
    """Keep only the first few characters of a credential."""
    if not value:
        return "<unset>"
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}..."
