"""
Tests for busline.validator.Validator.
"""

import asyncio
import copy
import pickle

import pytest
from sample_models import (
    Address,
    AddressValidator,
    PasswordRequest,
    PasswordValidator,
    Phone,
    ProfileRequest,
    ProfileValidator,
)

from busline import Err, ErrorRecord, Ok, ValidationFailure, Validator


class TestValidate:
    def test_valid_instance_returns_none(self):
        assert PasswordValidator().validate(PasswordRequest("secret123", "secret123")) is None

    def test_aggregates_every_failure(self):
        with pytest.raises(ValidationFailure) as exc_info:
            PasswordValidator().validate(PasswordRequest("123", "456"))

        assert exc_info.value.errors == [
            ErrorRecord("password", "Password must be at least 6 characters"),
            ErrorRecord("confirmPassword", "Passwords do not match"),
        ]

    def test_rules_run_in_declaration_order(self):
        with pytest.raises(ValidationFailure) as exc_info:
            ProfileValidator().validate(ProfileRequest("", Address(city="")))
        assert exc_info.value.fields == ["name", "address.city"]

    def test_no_leakage_between_calls(self):
        validator = PasswordValidator()
        with pytest.raises(ValidationFailure):
            validator.validate(PasswordRequest("123", "123"))
        validator.validate(PasswordRequest("secret123", "secret123"))

    def test_valid_twice_never_raises(self):
        validator = PasswordValidator()
        request = PasswordRequest("secret123", "secret123")
        validator.validate(request)
        validator.validate(request)

    def test_invalid_twice_raises_equal_failures(self):
        validator = PasswordValidator()
        request = PasswordRequest("123", "12")
        failures = []
        for _ in range(2):
            with pytest.raises(ValidationFailure) as exc_info:
                validator.validate(request)
            failures.append(exc_info.value)

        assert failures[0] == failures[1]
        assert failures[0] is not failures[1]
        assert failures[0].errors is not failures[1].errors

    def test_rule_for_accepts_attribute_name(self):
        with pytest.raises(ValidationFailure) as exc_info:
            ProfileValidator().validate(
                ProfileRequest("Alice", Address(city="Riyadh"), [Phone(number="abc")])
            )
        assert exc_info.value.errors == [
            ErrorRecord("phones[0].number", "number does not match pattern")
        ]


class TestNestedValidation:
    def test_nested_field_path(self):
        with pytest.raises(ValidationFailure) as exc_info:
            ProfileValidator().validate(ProfileRequest("Alice", Address(city="")))
        assert exc_info.value.errors == [
            ErrorRecord("address.city", "City must not be empty")
        ]

    def test_nested_validator_reusable_directly(self):
        validator = AddressValidator()
        validator.validate(Address(city="Riyadh"))
        with pytest.raises(ValidationFailure) as exc_info:
            validator.validate(Address(city="  "))
        assert exc_info.value.errors == [ErrorRecord("city", "City must not be empty")]

    def test_recursive_validator(self):
        class Node:
            def __init__(self, name, child=None):
                self.name = name
                self.child = child

        class NodeValidator(Validator[Node]):
            def build_rules(self):
                self.rule_for(lambda n: n.name, "name").not_empty()
                self.rule_for(lambda n: n.child, "child").nested(self)

        with pytest.raises(ValidationFailure) as exc_info:
            NodeValidator().validate(Node("root", Node("a", Node(""))))
        assert exc_info.value.errors == [
            ErrorRecord("child.child.name", "name must not be empty")
        ]


class TestInstanceBinding:
    def test_instance_outside_validate_raises(self):
        with pytest.raises(RuntimeError):
            PasswordValidator().instance

    def test_rule_for_outside_validate_raises(self):
        with pytest.raises(RuntimeError):
            PasswordValidator().rule_for(lambda x: x.password, "password")

    def test_instance_visible_inside_rules(self):
        seen = []

        class Recording(Validator[str]):
            def build_rules(self):
                seen.append(self.instance)

        validator = Recording()
        validator.validate("first")
        validator.validate("second")
        assert seen == ["first", "second"]

    @pytest.mark.asyncio
    async def test_concurrent_tasks_do_not_share_instance(self):
        class Echo(Validator[str]):
            def build_rules(self):
                self.rule_for(lambda s: s, "value").must_match(self.instance)

        validator = Echo()

        async def run(value):
            await asyncio.sleep(0)
            return validator.check(value)

        results = await asyncio.gather(*(run(f"v{i}") for i in range(20)))
        assert all(isinstance(r, Ok) for r in results)
        assert [r.value for r in results] == [f"v{i}" for i in range(20)]


class TestCheck:
    def test_ok(self):
        request = PasswordRequest("secret123", "secret123")
        result = PasswordValidator().check(request)
        assert isinstance(result, Ok)
        assert result.value is request
        assert result.is_ok()
        assert result

    def test_err(self):
        result = PasswordValidator().check(PasswordRequest("123", "123"))
        assert isinstance(result, Err)
        assert result.is_err()
        assert not result
        assert result.errors == (
            ErrorRecord("password", "Password must be at least 6 characters"),
        )

    def test_err_fields_and_equality(self):
        validator = PasswordValidator()
        request = PasswordRequest("123", "456")
        result = validator.check(request)
        assert result.fields == ["password", "confirmPassword"]
        assert result == validator.check(request)
        assert len({result, validator.check(request)}) == 1

    def test_is_valid(self):
        assert PasswordValidator().is_valid(PasswordRequest("secret123", "secret123"))
        assert not PasswordValidator().is_valid(PasswordRequest("secret123", "nope"))


class TestValidationFailure:
    def test_str_lists_each_error(self):
        failure = ValidationFailure(
            [ErrorRecord("email", "Email is required"), ErrorRecord("password", "too short")]
        )
        assert str(failure) == "email: Email is required\npassword: too short"

    def test_by_field_groups_messages(self):
        failure = ValidationFailure(
            [
                ErrorRecord("password", "a"),
                ErrorRecord("email", "b"),
                ErrorRecord("password", "c"),
            ]
        )
        assert failure.by_field() == {"password": ["a", "c"], "email": ["b"]}
        assert failure.fields == ["password", "email"]

    def test_structural_equality(self):
        assert ValidationFailure([ErrorRecord("a", "b")]) == ValidationFailure(
            [ErrorRecord("a", "b")]
        )
        assert ValidationFailure([ErrorRecord("a", "b")]) != ValidationFailure([])

    def test_hashable_by_identity(self):
        failure = ValidationFailure([ErrorRecord("a", "b")])
        other = ValidationFailure([ErrorRecord("a", "b")])
        assert {failure, other} == {failure, other}
        assert len({failure, failure}) == 1
        assert {failure: "seen"}[failure] == "seen"

    def test_survives_copy_and_pickle(self):
        failure = ValidationFailure(
            [ErrorRecord("email", "Email is required"), ErrorRecord("password", "too short")]
        )
        for restored in (copy.copy(failure), pickle.loads(pickle.dumps(failure))):
            assert restored == failure
            assert restored.errors == failure.errors
            assert str(restored) == str(failure)
