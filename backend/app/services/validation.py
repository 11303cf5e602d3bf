"""
Entry content rules.

Everything here is a pure function of the candidate: no database, no Stripe.
All failing rules are collected so the client can show every problem at once.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from app.config import MAX_UPLOAD_BYTES
from app.errors import Problem, ValidationFailure
from app.services.documents import ALLOWED_MIME, content_matches
from app.services.fees import CATEGORIES, ENTRY_TYPES

TITLE_MIN, TITLE_MAX = 5, 100
DESCRIPTION_MAX = 1000
WORDS_MIN, WORDS_MAX = 100, 2000
# Column widths in the entries table
OWNER_ID_MAX = 128
FILE_NAME_MAX = 255
PAYMENT_INTENT_ID_MAX = 255

# Host must end right after the known domain, so vimeo.com.evil.net is refused too
VIDEO_URL_RE = re.compile(r"^(https?://)?(www\.)?(youtube\.com|youtu\.be|vimeo\.com)(?=[/?#:]|$)", re.IGNORECASE)

REQUIRED_FIELDS = (
    ("owner_id", "ownerId"),
    ("category", "category"),
    ("entry_type", "entryType"),
    ("title", "title"),
    ("payment_intent_id", "paymentIntentId"),
)


@dataclass(frozen=True)
class UploadedFile:
    file_name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class EntryCandidate:
    """What a client may supply for a new entry. Fee amounts are deliberately absent."""
    owner_id: str | None
    category: str | None
    entry_type: str | None
    title: str | None
    payment_intent_id: str | None
    description: str | None = None
    text_content: str | None = None
    video_url: str | None = None
    file: UploadedFile | None = None


def word_count(text: str | None) -> int:
    return len(text.split()) if text else 0

def is_video_url(url: str | None) -> bool:
    """
    YouTube or Vimeo link, scheme and www. optional.

    The known domain must be followed by a host boundary (/ ? # : or the end),
    so look-alike hosts such as youtube.community or vimeo.com.evil.net are
    rejected even though they start with an accepted name.
    """
    return bool(url) and VIDEO_URL_RE.match(url.strip()) is not None

def check_file(file: UploadedFile | None) -> list[Problem]:
    if file is None or not file.data:
        return [Problem("file", "File required for pitch-deck entries")]
    problems = []
    if file.content_type not in ALLOWED_MIME:
        problems.append(Problem("file", f"Invalid file type: {file.content_type}. Only PDF, PPT, and PPTX files are allowed."))
    elif not content_matches(file.content_type, file.data):
        problems.append(Problem("file", f"File content does not look like {file.content_type}"))
    if file.size > MAX_UPLOAD_BYTES:
        problems.append(Problem("file", f"File size ({file.size / (1024 * 1024):.1f}MB) exceeds 25MB limit"))
    if len(file.file_name) > FILE_NAME_MAX:
        problems.append(Problem("file", f"File name must be at most {FILE_NAME_MAX} characters"))
    return problems

def validate_entry(c: EntryCandidate) -> list[Problem]:
    problems: list[Problem] = []
    for attr, name in REQUIRED_FIELDS:
        value = getattr(c, attr)
        if value is None or not str(value).strip():
            problems.append(Problem(name, f"{name} is required"))

    if c.owner_id and len(c.owner_id) > OWNER_ID_MAX:
        problems.append(Problem("ownerId", f"ownerId must be at most {OWNER_ID_MAX} characters"))
    if c.payment_intent_id and len(c.payment_intent_id) > PAYMENT_INTENT_ID_MAX:
        problems.append(Problem("paymentIntentId", f"paymentIntentId must be at most {PAYMENT_INTENT_ID_MAX} characters"))

    if c.category and c.category not in CATEGORIES:
        problems.append(Problem("category", f"Invalid category: {c.category}"))
    if c.entry_type and c.entry_type not in ENTRY_TYPES:
        problems.append(Problem("entryType", f"Invalid entry type: {c.entry_type}"))

    if c.title and c.title.strip():
        n = len(c.title.strip())
        if n < TITLE_MIN or n > TITLE_MAX:
            problems.append(Problem("title", f"Title must be between {TITLE_MIN} and {TITLE_MAX} characters"))
    if c.description and len(c.description) > DESCRIPTION_MAX:
        problems.append(Problem("description", f"Description must be at most {DESCRIPTION_MAX} characters"))

    if c.entry_type == "text":
        words = word_count(c.text_content)
        if not words:
            problems.append(Problem("textContent", "Text content required for text entries"))
        elif words < WORDS_MIN or words > WORDS_MAX:
            problems.append(Problem("textContent", f"Text entries must be between {WORDS_MIN}-{WORDS_MAX} words (got {words})"))
    elif c.entry_type == "pitch-deck":
        problems.extend(check_file(c.file))
    elif c.entry_type == "video":
        if not c.video_url or not c.video_url.strip():
            problems.append(Problem("videoUrl", "Video URL required for video entries"))
        elif not is_video_url(c.video_url):
            problems.append(Problem("videoUrl", "Valid YouTube or Vimeo URL required for video entries"))
    return problems

def ensure_valid(c: EntryCandidate) -> None:
    problems = validate_entry(c)
    if problems:
        raise ValidationFailure(problems)
