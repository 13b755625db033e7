import io

from PIL import Image


def make_thumbnail(data: bytes, max_side: int = 200) -> bytes:
    """Return a PNG preview whose longest side is at most ``max_side``."""
    with Image.open(io.BytesIO(data)) as img:
        img.thumbnail((max_side, max_side))
        if img.mode not in ("RGB", "RGBA", "L", "LA"):
            img = img.convert("RGBA")
        out = io.BytesIO()
        img.save(out, format="PNG")
    return out.getvalue()
