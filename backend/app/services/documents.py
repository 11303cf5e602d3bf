from __future__ import annotations

PDF = "application/pdf"
PPT = "application/vnd.ms-powerpoint"
PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

ALLOWED_MIME = {PDF, PPT, PPTX}
EXT_FOR_MIME = {PDF: "pdf", PPT: "ppt", PPTX: "pptx"}

_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
_ZIP_MAGIC = b"PK\x03\x04"

def sniff_mime(data: bytes) -> str | None:
    """Best guess of a pitch-deck's real type from its leading bytes."""
    head = data[:1024]
    if head.startswith(_OLE2_MAGIC):
        return PPT
    if head.startswith(_ZIP_MAGIC):
        return PPTX
    # Some exporters prepend junk before the header; PDF readers tolerate it
    if b"%PDF-" in head:
        return PDF
    return None

def content_matches(declared: str, data: bytes) -> bool:
    return sniff_mime(data) == declared

def ext_for_mime(mime: str) -> str:
    return EXT_FOR_MIME.get(mime, "bin")
