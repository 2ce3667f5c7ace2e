"""multipart/x-mixed-replace framing for relayed capture output."""

CRLF = b"\r\n"

STREAM_HEADERS: dict[str, str] = {
    "Connection": "keep-alive",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class MultipartFramer:
    """Wraps each chunk of capture output into one self-delimited part."""

    def __init__(self, boundary: str, part_content_type: str = "image/jpeg"):
        if not boundary:
            raise ValueError("boundary must not be empty")
        self.boundary = boundary
        self.part_content_type = part_content_type
        self._delimiter = f"--{boundary}".encode("ascii") + CRLF
        self._content_type_line = f"Content-Type: {part_content_type}".encode("ascii") + CRLF

    @property
    def media_type(self) -> str:
        return f"multipart/x-mixed-replace; boundary={self.boundary}"

    def frame(self, chunk: bytes) -> bytes:
        # delimiter, headers, blank line, payload, trailing CRLF
        return b"".join(
            (
                self._delimiter,
                self._content_type_line,
                f"Content-Length: {len(chunk)}".encode("ascii") + CRLF,
                CRLF,
                chunk,
                CRLF,
            )
        )
