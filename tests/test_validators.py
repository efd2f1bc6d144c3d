import pytest

from writdesk.utils.exceptions import AttachmentValidationError
from writdesk.utils.helpers import format_date, format_status_label, format_writ_type, parse_datetime
from writdesk.utils.validators import is_blank, validate_attachment, validate_email

KB = 1024


def test_attachment_at_limit_is_accepted():
    assert validate_attachment(250 * KB, "application/pdf") is True


def test_attachment_over_limit_is_rejected():
    with pytest.raises(AttachmentValidationError) as exc:
        validate_attachment(251 * KB, "application/pdf")
    assert exc.value.message == "File size exceeds 250 KB limit"


@pytest.mark.parametrize(
    "content_type",
    [
        "application/pdf",
        "image/png",
        "image/jpeg",
        "image/jpg",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
        "Application/PDF; charset=binary",
    ],
)
def test_allowed_attachment_types(content_type):
    assert validate_attachment(10 * KB, content_type)


@pytest.mark.parametrize(
    "content_type",
    ["application/vnd.openxmlformats-officedocument.wordprocessingml.document", "text/plain", "", None],
)
def test_rejected_attachment_types(content_type):
    with pytest.raises(AttachmentValidationError) as exc:
        validate_attachment(10 * KB, content_type)
    assert exc.value.message.startswith("Invalid file type")


def test_size_is_checked_before_type():
    with pytest.raises(AttachmentValidationError) as exc:
        validate_attachment(300 * KB, "text/plain")
    assert "250 KB" in exc.value.message


def test_validate_email_and_blank():
    assert validate_email("clerk@court.gov.in")
    assert not validate_email("clerk@")
    assert is_blank(None) and is_blank("  ")
    assert not is_blank("x") and not is_blank(0)


def test_parse_datetime_normalises_to_naive_utc():
    parsed = parse_datetime("2024-03-01T18:30:00.000Z")
    assert parsed.tzinfo is None
    assert parsed.hour == 18
    assert parse_datetime("2024-03-01T05:30:00+05:30").hour == 0
    assert parse_datetime("not a date") is None
    assert parse_datetime("") is None


def test_formatting_helpers():
    assert format_date("2024-03-01T18:30:00.000Z") == "2024-03-01"
    assert format_date(None) == ""
    assert format_status_label("UNDER_INVESTIGATION") == "Under Investigation"
    assert format_status_label(None) == "Unknown"
    assert format_writ_type("SUSPENSION_OF_SENTENCE") == "Suspension of Sentence"
    assert format_writ_type(None) == "-"
