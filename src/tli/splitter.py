"""Split long note bodies into size-bounded segments.

Things silently truncates oversized notes, so a body that is too large is
sent as several emails titled "<title> (1)", "<title> (2)", ...
"""

from .models.note import Segment

MAX_SEGMENT_SIZE = 2000


def _char_start(data: bytes, index: int) -> int:
    """Move index back to the first byte of the UTF-8 character it falls in."""
    while index > 0 and (data[index] & 0xC0) == 0x80:
        index -= 1
    return index


def _char_end(data: bytes, index: int) -> int:
    """Return the index just past the UTF-8 character starting at index."""
    index += 1
    while index < len(data) and (data[index] & 0xC0) == 0x80:
        index += 1
    return index


def split_segments(title: str, body: str, max_size: int = MAX_SEGMENT_SIZE) -> list[Segment]:
    """Split a note body into segments of at most max_size UTF-8 bytes.

    Chunking does not respect word or line boundaries. A boundary that
    would cut a multi-byte character is moved back to the character start,
    so every chunk is valid text and the chunks concatenate to the body.

    Args:
        title: Note title
        body: Note body (lines already joined with newlines)
        max_size: Maximum segment size in bytes

    Returns:
        Segments in body order; a single untouched segment when the body
        is shorter than max_size

    Raises:
        ValueError: If max_size is not positive
    """
    if max_size <= 0:
        raise ValueError(f"max_size must be positive, got {max_size}")

    data = body.encode("utf-8")
    if len(data) < max_size:
        return [Segment(title=title, text=body)]

    segments: list[Segment] = []
    start = 0
    count = 1
    while start < len(data):
        end = min(start + max_size, len(data))
        if end < len(data):
            end = _char_start(data, end)
            if end == start:
                # max_size is narrower than this character
                end = _char_end(data, start)
        segments.append(
            Segment(title=f"{title} ({count})", text=data[start:end].decode("utf-8"))
        )
        start = end
        count += 1

    return segments
