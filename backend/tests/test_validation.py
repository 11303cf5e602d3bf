"""
Entry validator rules. The validator collects every failing rule; tests
assert on the fields reported rather than on the first failure only.
"""
from __future__ import annotations
import pytest
from app.config import MAX_UPLOAD_BYTES
from app.errors import ValidationFailure
from app.services.documents import PDF, PPT, PPTX
from app.services.validation import UploadedFile, check_file, ensure_valid, is_video_url, validate_entry, word_count
from factories import MIB, make_candidate, pdf_bytes, pdf_file, words


def _fields(problems) -> set[str]:
    return {p.field for p in problems}


def test_valid_text_entry_passes():
    assert validate_entry(make_candidate()) == []
    ensure_valid(make_candidate())


@pytest.mark.parametrize("n,ok", [(99, False), (100, True), (2000, True), (2001, False)])
def test_text_word_count_boundaries(n, ok):
    problems = validate_entry(make_candidate(text_content=words(n)))
    assert (problems == []) is ok
    if not ok:
        assert _fields(problems) == {"textContent"}


def test_word_count_ignores_extra_whitespace():
    assert word_count("  one\ttwo\n\nthree   ") == 3
    assert word_count("") == 0
    assert word_count(None) == 0
    padded = "   ".join(words(100).split()) + "\n\n"
    assert validate_entry(make_candidate(text_content=padded)) == []


def test_text_entry_requires_text():
    problems = validate_entry(make_candidate(text_content=None))
    assert _fields(problems) == {"textContent"}


@pytest.mark.parametrize("url", [
    "https://www.youtube.com/watch?v=X",
    "https://youtu.be/X",
    "https://vimeo.com/X",
    "http://youtube.com/watch?v=abc",
    "www.youtube.com/watch?v=abc",
    "HTTPS://WWW.YOUTUBE.COM/watch?v=abc",
    "vimeo.com",
])
def test_video_urls_accepted(url):
    assert is_video_url(url)
    assert validate_entry(make_candidate(entry_type="video", text_content=None, video_url=url)) == []


@pytest.mark.parametrize("url", [
    "https://youtube.community/x",
    "https://vimeo.evil.com/X",
    "https://vimeo.com.evil.net/X",
    "https://evil.com/?u=youtube.com",
    "ftp://youtube.com/watch?v=1",
    "",
    "   ",
])
def test_video_urls_rejected(url):
    assert not is_video_url(url)
    problems = validate_entry(make_candidate(entry_type="video", text_content=None, video_url=url))
    assert _fields(problems) == {"videoUrl"}


def test_pitch_deck_accepts_exactly_25_mib():
    f = pdf_file(MAX_UPLOAD_BYTES)
    assert f.size == 25 * 1024 * 1024
    assert check_file(f) == []
    assert validate_entry(make_candidate(entry_type="pitch-deck", text_content=None, file=f)) == []


def test_pitch_deck_rejects_one_byte_over():
    problems = check_file(pdf_file(MAX_UPLOAD_BYTES + 1))
    assert len(problems) == 1 and "25MB" in problems[0].message


@pytest.mark.parametrize("mime", ["image/png", "application/zip", "text/plain", "application/msword"])
def test_pitch_deck_rejects_other_types(mime):
    f = UploadedFile(file_name="deck.bin", content_type=mime, data=pdf_bytes(MIB))
    problems = validate_entry(make_candidate(entry_type="pitch-deck", text_content=None, file=f))
    assert _fields(problems) == {"file"}
    assert "Invalid file type" in problems[0].message


def test_pitch_deck_accepts_ppt_and_pptx_signatures():
    ppt = UploadedFile("deck.ppt", PPT, b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\0" * 512)
    pptx = UploadedFile("deck.pptx", PPTX, b"PK\x03\x04" + b"\0" * 512)
    assert check_file(ppt) == []
    assert check_file(pptx) == []


def test_pitch_deck_content_must_match_declared_type():
    renamed = UploadedFile("deck.pdf", PDF, b"MZ\x90\x00 not a pdf at all")
    problems = check_file(renamed)
    assert len(problems) == 1 and "does not look like" in problems[0].message


def test_pitch_deck_requires_file():
    problems = validate_entry(make_candidate(entry_type="pitch-deck", text_content=None, file=None))
    assert _fields(problems) == {"file"}


def test_missing_required_fields_are_all_reported():
    c = make_candidate(owner_id=None, category="", title=None, payment_intent_id="  ", entry_type=None)
    fields = _fields(validate_entry(c))
    assert {"ownerId", "category", "entryType", "title", "paymentIntentId"} <= fields


def test_bad_enumerations_reported():
    problems = validate_entry(make_candidate(category="sports", entry_type="podcast"))
    assert _fields(problems) == {"category", "entryType"}


@pytest.mark.parametrize("title,ok", [("abcd", False), ("abcde", True), ("x" * 100, True), ("x" * 101, False), ("  abcd  ", False)])
def test_title_length(title, ok):
    assert (validate_entry(make_candidate(title=title)) == []) is ok


def test_description_limit():
    assert validate_entry(make_candidate(description="d" * 1000)) == []
    assert _fields(validate_entry(make_candidate(description="d" * 1001))) == {"description"}


def test_owner_id_and_payment_intent_fit_their_columns():
    assert validate_entry(make_candidate(owner_id="o" * 128, payment_intent_id="pi_" + "x" * 252)) == []
    problems = validate_entry(make_candidate(owner_id="o" * 129, payment_intent_id="pi_" + "x" * 253))
    assert _fields(problems) == {"ownerId", "paymentIntentId"}


def test_pitch_deck_file_name_length():
    assert check_file(pdf_file(size=4096, name="d" * 251 + ".pdf")) == []
    problems = check_file(pdf_file(size=4096, name="d" * 252 + ".pdf"))
    assert len(problems) == 1 and "File name" in problems[0].message


def test_multiple_failures_collected_in_one_pass():
    c = make_candidate(title="abc", description="d" * 1001, text_content=words(5))
    with pytest.raises(ValidationFailure) as exc:
        ensure_valid(c)
    assert _fields(exc.value.problems) == {"title", "description", "textContent"}
    detail = exc.value.detail()
    assert len(detail["problems"]) == 3
