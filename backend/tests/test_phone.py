import pytest

from callflow.services.phone import dedupe_hash, format_for_display, is_e164, to_e164, uk_local_to_e164


class TestToE164:
    def test_uk_national_number(self):
        assert to_e164("07700900123") == "+447700900123"

    def test_already_e164(self):
        assert to_e164("+447700900123") == "+447700900123"

    def test_formatting_is_stripped(self):
        assert to_e164("+44 (0)7700-900 123") == "+4407700900123"
        assert to_e164("07700 900 123") == "+447700900123"

    def test_other_country_keeps_digits(self):
        assert to_e164("1 415 555 1234") == "+14155551234"

    def test_short_leading_zero_not_treated_as_uk(self):
        assert to_e164("012345") == "+012345"

    def test_no_digits(self):
        assert to_e164("n/a") == ""
        assert to_e164("") == ""


def test_uk_local_to_e164():
    assert uk_local_to_e164("07700900123") == "+447700900123"
    assert uk_local_to_e164("+14155551234") == "+14155551234"


@pytest.mark.parametrize(
    "e164,display",
    [
        ("+447700900123", "07700 900123"),
        ("+442071234567", "02071234567"),
        ("+14155551234", "+14155551234"),
    ],
)
def test_format_for_display(e164, display):
    assert format_for_display(e164) == display


def test_is_e164():
    assert is_e164("+447700900123")
    assert is_e164(" +14155551234 ")
    assert not is_e164("+0123")
    assert not is_e164("phone")


def test_dedupe_hash_is_stable_sha256():
    assert dedupe_hash("+447700900123") == dedupe_hash("+447700900123")
    assert len(dedupe_hash("+447700900123")) == 64
    assert dedupe_hash("+447700900123") != dedupe_hash("+447700900124")
