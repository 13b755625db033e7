def build_share_url(base_url: str, file_id: str) -> str:
    """Link the recipient opens to reach ``file_id`` on the public site."""
    return f"{base_url.rstrip('/')}/{file_id}"
