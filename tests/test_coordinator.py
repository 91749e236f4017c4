"""Tests for the ValidationCoordinator and the property-level hooks."""

import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock

from formguard.forms.binding import FieldBinding, PathError, PathErrorPolicy, PathResolver
from formguard.forms.fields import Form, FormField
from formguard.validation.checks import register_canned_checks
from formguard.validation.coordinator import (
    CascadeError,
    CascadePolicy,
    ValidationCoordinator,
    validate_value,
    validate_value_and_dependent,
)
from formguard.validation.engine import RuleSetValidator
from formguard.validation.registry import ComponentCheckRegistry
from formguard.validation.rules import RuleSet
from formguard.validation.types import ValidationError, ValidationResult


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def setup_registry():
    ComponentCheckRegistry.clear()
    register_canned_checks()
    yield
    ComponentCheckRegistry.clear()


@pytest.fixture
def date_range_rules() -> RuleSet:
    """Start is required; End must be on or after Start."""
    return RuleSet.from_dict({
        "name": "Booking",
        "rules": [
            {"property": "Start", "components": [{"type": "notEmpty"}]},
            {
                "property": "End",
                "components": [
                    {"type": "comparison", "params": {"operator": "gte", "compareTo": "Start"}},
                ],
            },
        ],
    })


@pytest.fixture
def mutual_rules() -> RuleSet:
    """Start <= End and End >= Start: each side depends on the other."""
    return RuleSet.from_dict({
        "name": "Booking",
        "rules": [
            {
                "property": "Start",
                "components": [
                    {"type": "comparison", "params": {"operator": "lte", "compareTo": "End"}},
                ],
            },
            {
                "property": "End",
                "components": [
                    {"type": "comparison", "params": {"operator": "gte", "compareTo": "Start"}},
                ],
            },
        ],
    })


def make_handle(path: str = "", unbound: bool = False, revalidate=None):
    handle = MagicMock()
    handle.is_unbound = unbound
    handle.bound_property_path.return_value = path
    handle.trigger_revalidation = revalidate or AsyncMock(return_value=None)
    return handle


def make_validator(messages: list[str] | None = None) -> AsyncMock:
    validator = AsyncMock()
    if messages:
        errors = [ValidationError(message=m, code="X") for m in messages]
        validator.validate.return_value = ValidationResult(valid=False, errors=errors)
    else:
        validator.validate.return_value = ValidationResult(valid=True)
    return validator


class RecordingValidator(RuleSetValidator):
    """RuleSetValidator that records every scope it is asked to validate."""

    def __init__(self, rule_set):
        super().__init__(rule_set)
        self.scopes: list[list[str]] = []

    async def validate(self, instance, include_properties=None):
        self.scopes.append(sorted(include_properties or []))
        return await super().validate(instance, include_properties)


# =============================================================================
# validate_only
# =============================================================================


class TestValidateOnly:
    @pytest.mark.asyncio
    async def test_valid_returns_empty(self, date_range_rules):
        validator = make_validator()
        coordinator = ValidationCoordinator(validator, date_range_rules)

        assert await coordinator.validate_only({"Start": None}, "Start") == []
        validator.validate.assert_awaited_once_with({"Start": None}, ["Start"])

    @pytest.mark.asyncio
    async def test_invalid_returns_messages_in_order(self, date_range_rules):
        validator = make_validator(["first", "second"])
        coordinator = ValidationCoordinator(validator, date_range_rules)

        assert await coordinator.validate_only({}, "Start") == ["first", "second"]

    @pytest.mark.asyncio
    async def test_valid_result_with_only_warnings_returns_empty(self, date_range_rules):
        validator = AsyncMock()
        validator.validate.return_value = ValidationResult(
            valid=True,
            warnings=[ValidationError(message="heads up", code="W")],
        )
        coordinator = ValidationCoordinator(validator, date_range_rules)

        assert await coordinator.validate_only({}, "Start") == []

    @pytest.mark.asyncio
    async def test_does_not_touch_fields(self, date_range_rules):
        validator = make_validator()
        coordinator = ValidationCoordinator(validator, date_range_rules)
        end = make_handle("End")

        await coordinator.validate_only({}, "Start")

        end.trigger_revalidation.assert_not_called()

    @pytest.mark.asyncio
    async def test_validator_failure_propagates(self, date_range_rules):
        validator = AsyncMock()
        validator.validate.side_effect = RuntimeError("engine crashed")
        coordinator = ValidationCoordinator(validator, date_range_rules)

        with pytest.raises(RuntimeError, match="engine crashed"):
            await coordinator.validate_only({}, "Start")

    @pytest.mark.asyncio
    async def test_idempotent(self, date_range_rules):
        coordinator = ValidationCoordinator(RuleSetValidator(date_range_rules), date_range_rules)
        record = {"Start": date(2024, 6, 5), "End": date(2024, 6, 1)}

        first = await coordinator.validate_only(record, "End")
        second = await coordinator.validate_only(record, "End")

        assert first == second == ["End must be greater than or equal to Start"]


# =============================================================================
# validate_with_dependents
# =============================================================================


class TestValidateWithDependents:
    @pytest.mark.asyncio
    async def test_dependent_field_revalidated_once_then_changed_property(self, date_range_rules):
        order = []

        async def validate(instance, include_properties=None):
            order.append(("validate", list(include_properties)))
            return ValidationResult(
                valid=False,
                errors=[ValidationError(message="Start must not be empty", code="REQUIRED")],
            )

        validator = AsyncMock()
        validator.validate.side_effect = validate

        async def revalidate_end():
            order.append(("revalidate", "End"))

        start = make_handle("Start")
        end = make_handle("End", revalidate=AsyncMock(side_effect=revalidate_end))
        coordinator = ValidationCoordinator(validator, date_range_rules)

        messages = await coordinator.validate_with_dependents({}, "Start", [start, end])

        assert messages == ["Start must not be empty"]
        end.trigger_revalidation.assert_awaited_once()
        start.trigger_revalidation.assert_not_called()
        assert order == [("revalidate", "End"), ("validate", ["Start"])]

    @pytest.mark.asyncio
    async def test_unmounted_dependent_is_skipped(self, date_range_rules):
        validator = make_validator(["Start must not be empty"])
        start = make_handle("Start")
        coordinator = ValidationCoordinator(validator, date_range_rules)

        messages = await coordinator.validate_with_dependents({}, "Start", [start])

        assert messages == ["Start must not be empty"]
        start.trigger_revalidation.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_dependents(self, date_range_rules):
        validator = make_validator()
        start = make_handle("Start")
        end = make_handle("End")
        coordinator = ValidationCoordinator(validator, date_range_rules)

        assert await coordinator.validate_with_dependents({}, "End", [start, end]) == []
        start.trigger_revalidation.assert_not_called()
        end.trigger_revalidation.assert_not_called()

    @pytest.mark.asyncio
    async def test_dependent_failure_propagates_and_aborts(self, date_range_rules):
        validator = make_validator()
        failing = make_handle(
            "End", revalidate=AsyncMock(side_effect=RuntimeError("render failed"))
        )
        second = make_handle("End")
        coordinator = ValidationCoordinator(validator, date_range_rules)

        with pytest.raises(RuntimeError, match="render failed"):
            await coordinator.validate_with_dependents({}, "Start", [failing, second])

        second.trigger_revalidation.assert_not_called()
        validator.validate.assert_not_called()

    @pytest.mark.asyncio
    async def test_every_matching_handle_in_registry_order(self):
        rule_set = RuleSet.from_dict({
            "name": "Trip",
            "rules": [
                {
                    "property": "checkout",
                    "components": [
                        {"type": "comparison", "params": {"operator": "gt", "compareTo": "checkin"}},
                    ],
                },
                {
                    "property": "cancelBy",
                    "components": [
                        {"type": "comparison", "params": {"operator": "lte", "compareTo": "checkin"}},
                    ],
                },
            ],
        })
        order = []

        def recorder(name):
            async def revalidate():
                order.append(name)

            return AsyncMock(side_effect=revalidate)

        registry = [
            make_handle("cancelBy", revalidate=recorder("cancelBy")),
            make_handle("checkin", revalidate=recorder("checkin")),
            make_handle("checkout", revalidate=recorder("checkout-1")),
            make_handle("checkout", revalidate=recorder("checkout-2")),
        ]
        coordinator = ValidationCoordinator(make_validator(), rule_set)

        await coordinator.validate_with_dependents({}, "checkin", registry)

        assert order == ["cancelBy", "checkout-1", "checkout-2"]

    @pytest.mark.asyncio
    async def test_unbound_and_unresolvable_handles_never_match(self, date_range_rules):
        unbound = make_handle(unbound=True)
        broken = make_handle()
        broken.bound_property_path.side_effect = PathError("unsupported binding")
        empty = make_handle("")
        coordinator = ValidationCoordinator(make_validator(), date_range_rules)

        await coordinator.validate_with_dependents({}, "Start", [unbound, broken, empty])

        for handle in (unbound, broken, empty):
            handle.trigger_revalidation.assert_not_called()

    @pytest.mark.asyncio
    async def test_raise_path_policy_surfaces_binding_errors(self, date_range_rules):
        broken = make_handle()
        broken.bound_property_path.side_effect = PathError("unsupported binding")
        coordinator = ValidationCoordinator(
            make_validator(),
            date_range_rules,
            path_resolver=PathResolver(PathErrorPolicy.RAISE),
        )

        with pytest.raises(PathError):
            await coordinator.validate_with_dependents({}, "Start", [broken])

    @pytest.mark.asyncio
    async def test_registry_is_rescanned_each_call(self, date_range_rules):
        coordinator = ValidationCoordinator(make_validator(), date_range_rules)
        registry = []

        await coordinator.validate_with_dependents({}, "Start", registry)

        end = make_handle("End")
        registry.append(end)
        await coordinator.validate_with_dependents({}, "Start", registry)

        end.trigger_revalidation.assert_awaited_once()


class TestCollectPolicy:
    @pytest.mark.asyncio
    async def test_runs_all_dependents_and_reports_aggregate(self, date_range_rules):
        validator = make_validator(["Start must not be empty"])
        failing = make_handle("End", revalidate=AsyncMock(side_effect=RuntimeError("boom")))
        second = make_handle("End")
        coordinator = ValidationCoordinator(
            validator, date_range_rules, cascade_policy=CascadePolicy.COLLECT
        )

        with pytest.raises(CascadeError) as excinfo:
            await coordinator.validate_with_dependents({}, "Start", [failing, second])

        error = excinfo.value
        assert error.property_name == "Start"
        assert [h for h, _ in error.failures] == [failing]
        assert str(error.failures[0][1]) == "boom"
        assert error.messages == ["Start must not be empty"]
        second.trigger_revalidation.assert_awaited_once()
        validator.validate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_failures_returns_messages(self, date_range_rules):
        coordinator = ValidationCoordinator(
            make_validator(), date_range_rules, cascade_policy=CascadePolicy.COLLECT
        )
        assert await coordinator.validate_with_dependents({}, "Start", [make_handle("End")]) == []

    @pytest.mark.asyncio
    async def test_validator_failure_keeps_collected_failures(self, date_range_rules):
        validator = AsyncMock()
        validator.validate.side_effect = RuntimeError("engine crashed")
        failing = make_handle("End", revalidate=AsyncMock(side_effect=RuntimeError("boom")))
        coordinator = ValidationCoordinator(
            validator, date_range_rules, cascade_policy=CascadePolicy.COLLECT
        )

        with pytest.raises(CascadeError) as excinfo:
            await coordinator.validate_with_dependents({}, "Start", [failing])

        error = excinfo.value
        assert [h for h, _ in error.failures] == [failing]
        assert error.messages == []
        assert isinstance(error.__cause__, RuntimeError)
        assert str(error.__cause__) == "engine crashed"

    @pytest.mark.asyncio
    async def test_validator_failure_without_dependent_failures_propagates(
        self, date_range_rules
    ):
        validator = AsyncMock()
        validator.validate.side_effect = RuntimeError("engine crashed")
        coordinator = ValidationCoordinator(
            validator, date_range_rules, cascade_policy=CascadePolicy.COLLECT
        )

        with pytest.raises(RuntimeError, match="engine crashed"):
            await coordinator.validate_with_dependents({}, "Start", [make_handle("End")])


# =============================================================================
# End to end with Form / FormField
# =============================================================================


class TestFormIntegration:
    @pytest.mark.asyncio
    async def test_changing_start_refreshes_end_errors(self, date_range_rules):
        record = {"Start": date(2024, 6, 10), "End": date(2024, 6, 5)}
        validator = RuleSetValidator(date_range_rules)
        form = Form(record)
        start = form.mount(FormField("start", FieldBinding.accessor(lambda m: m.Start)))
        end = form.mount(FormField("end", FieldBinding.accessor(lambda m: m.End)))
        form.validation = validate_value_and_dependent(validator, date_range_rules, form)

        await start.trigger_revalidation()

        assert start.errors == []
        assert end.errors == ["End must be greater than or equal to Start"]

        record["Start"] = date(2024, 6, 1)
        await start.trigger_revalidation()

        assert end.errors == []

    @pytest.mark.asyncio
    async def test_mutual_comparisons_do_not_recurse(self, mutual_rules):
        record = {"Start": date(2024, 6, 10), "End": date(2024, 6, 5)}
        validator = RecordingValidator(mutual_rules)
        form = Form(record)
        start = form.mount(FormField("start", FieldBinding.of("Start")))
        end = form.mount(FormField("end", FieldBinding.of("End")))
        form.validation = validate_value_and_dependent(validator, mutual_rules, form)

        await start.trigger_revalidation()

        assert validator.scopes == [["End"], ["Start"]]
        assert start.errors == ["Start must be less than or equal to End"]
        assert end.errors == ["End must be greater than or equal to Start"]

    @pytest.mark.asyncio
    async def test_cascade_guard_is_released_after_the_call(self, mutual_rules):
        record = {"Start": date(2024, 6, 10), "End": date(2024, 6, 5)}
        validator = RecordingValidator(mutual_rules)
        form = Form(record)
        form.mount(FormField("start", FieldBinding.of("Start")))
        end = form.mount(FormField("end", FieldBinding.of("End")))
        form.validation = validate_value_and_dependent(validator, mutual_rules, form)

        await end.trigger_revalidation()
        await end.trigger_revalidation()

        assert validator.scopes == [["Start"], ["End"], ["Start"], ["End"]]

    @pytest.mark.asyncio
    async def test_validate_value_hook(self, date_range_rules):
        hook = validate_value(RuleSetValidator(date_range_rules))
        assert await hook({"Start": None}, "Start") == ["Start must not be empty"]
        assert await hook({"Start": date(2024, 1, 1)}, "Start") == []

    @pytest.mark.asyncio
    async def test_hooks_from_coordinator(self, date_range_rules):
        coordinator = ValidationCoordinator(RuleSetValidator(date_range_rules), date_range_rules)
        end = make_handle("End")

        cascading = coordinator.cascading_hook([end])
        single = coordinator.property_hook()

        assert await cascading({"Start": None}, "Start") == ["Start must not be empty"]
        end.trigger_revalidation.assert_awaited_once()
        assert await single({"Start": None}, "Start") == ["Start must not be empty"]
        end.trigger_revalidation.assert_awaited_once()


class TestFromConfig:
    def test_applies_policies(self, date_range_rules):
        from formguard.config import FormGuardConfig

        config = FormGuardConfig(
            cascade_policy=CascadePolicy.COLLECT,
            path_error_policy=PathErrorPolicy.RAISE,
        )
        coordinator = ValidationCoordinator.from_config(
            make_validator(), date_range_rules, config
        )
        assert coordinator.cascade_policy is CascadePolicy.COLLECT
        assert coordinator.path_resolver.policy is PathErrorPolicy.RAISE
