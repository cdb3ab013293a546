"""
Tests for the field-rule validator
"""

from crusades.utils.validator import validate


class TestValidator:
    def test_required_and_trimmed_values(self):
        validator = validate({"title": "  Lagos Crusade  ", "venue": ""}).required("title").required("venue", "Venue is required")

        assert validator.fails()
        assert validator.errors() == {"venue": "Venue is required"}
        assert validator.validated() == {"title": "Lagos Crusade"}

    def test_whitespace_only_is_missing(self):
        validator = validate({"title": "   "}).required("title", "Title is required")
        assert validator.errors() == {"title": "Title is required"}

    def test_email_format(self):
        assert validate({"email": "a@b.co"}).email("email").passes()
        assert validate({"email": "not-an-email"}).email("email").errors() == {"email": "Invalid email format"}

    def test_length_rules(self):
        validator = validate({"full_name": "A", "bio": "x" * 11}).min_length("full_name", 2).max_length("bio", 10)
        assert set(validator.errors()) == {"full_name", "bio"}

    def test_phone_needs_ten_to_fifteen_digits(self):
        assert validate({"phone": "+234 803 123 4567"}).phone("phone").passes()
        assert validate({"phone": "12345"}).phone("phone").fails()
        assert validate({"phone": "1" * 16}).phone("phone").fails()

    def test_confirmed(self):
        validator = validate({"password": "secret1", "password_confirmation": "secret2"})
        validator.confirmed("password", "password_confirmation", "Passwords do not match")
        assert validator.errors() == {"password": "Passwords do not match"}

    def test_numeric_bounds(self):
        assert validate({"capacity": "10"}).numeric("capacity").min("capacity", 1).passes()
        assert validate({"capacity": "ten"}).numeric("capacity").fails()
        assert validate({"capacity": 0}).min("capacity", 1).fails()
        assert validate({"capacity": 500}).max("capacity", 100).fails()

    def test_one_of(self):
        assert validate({"role": "usher"}).one_of("role", ["checker", "usher"]).passes()
        assert validate({"role": "boss"}).one_of("role", ["checker", "usher"]).fails()

    def test_optional_fields_only_when_present(self):
        validator = validate({"city": "Abuja", "zone": None}).optional("city").optional("zone")
        assert validator.validated() == {"city": "Abuja"}

    def test_last_error_wins(self):
        validator = validate({"password": "abc"}).min_length("password", 6, "too short").custom(
            "password", lambda v: v.isdigit(), "digits only"
        )
        assert validator.errors() == {"password": "digits only"}
