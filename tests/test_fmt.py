import pytest

from xvbalance.fmt import format_message


def test_plain_text_passes_through():
    assert format_message("hello world\n") == "hello world\n"


@pytest.mark.parametrize("value", [0, 7, 42, -1, -42, 123456, -2147483647])
def test_decimal_round_trip(value):
    assert int(format_message("%d", value)) == value


def test_decimal_wraps_to_signed_word():
    assert format_message("%d", 2147483648) == "-2147483648"


@pytest.mark.parametrize("value", [0, 1, 15, 255, 4096, 0xDEADBEEF])
def test_hex_round_trip_upper_case(value):
    text = format_message("%x", value)
    assert int(text, 16) == value
    assert text == text.upper()


def test_hex_is_unsigned():
    assert int(format_message("%x", -1), 16) == 0xFFFFFFFF


def test_pointer_same_as_hex():
    assert format_message("%p", 0xABC) == format_message("%x", 0xABC)


def test_string_and_null():
    assert format_message("%s-%s", "init", None) == "init-(null)"


def test_char_from_code():
    assert format_message("[%c]", ord("z")) == "[z]"


def test_percent_escape_and_unknown():
    assert format_message("100%%") == "100%"
    assert format_message("%q") == "%q"


def test_trailing_percent_is_dropped():
    assert format_message("abc%") == "abc"


def test_mixed_arguments_consumed_in_order():
    text = format_message("%d %s %d", 3, "RUNNABLE", 1)
    assert text == "3 RUNNABLE 1"


def test_missing_argument_raises():
    with pytest.raises(TypeError):
        format_message("%d %d", 1)