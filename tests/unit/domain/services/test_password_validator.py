"""Unit tests for the password policy."""

import pytest

from wayfarer.domain.services.password_validator import PasswordValidator


@pytest.fixture
def validator() -> PasswordValidator:
    return PasswordValidator()


def test_strong_password(validator):
    assert validator.validate("Str0ng!Pass") == []
    assert validator.is_valid("Str0ng!Pass")


@pytest.mark.parametrize(
    "password,code",
    [
        ("Sh0r!t", "password_too_short"),
        ("str0ng!pass", "password_no_uppercase"),
        ("STR0NG!PASS", "password_no_lowercase"),
        ("Strong!Pass", "password_no_digit"),
        ("Str0ngPass1", "password_no_special"),
    ],
)
def test_single_rule_violations(validator, password, code):
    assert [v.code for v in validator.validate(password)] == [code]


def test_reports_every_violation(validator):
    codes = {v.code for v in validator.validate("abc")}

    assert codes == {
        "password_too_short",
        "password_no_uppercase",
        "password_no_digit",
        "password_no_special",
    }


def test_max_length():
    validator = PasswordValidator(max_length=16)

    assert [v.code for v in validator.validate("Str0ng!" + "a" * 20)] == ["password_too_long"]
