"""Tests for ConstructSelector — the ordered catalogue of reflectable call shapes."""

from __future__ import annotations

from reflector.declarations import DeclarationTypeOracle
from reflector.oracle import ResolvedType, SymbolKind
from reflector.selector import ConstructKind, ConstructSelector
from tests.unit.conftest import FakeOracle, find_all, parse_ts, text_of


def _matches(source: str, oracle=None):
    tree, source_bytes = parse_ts(source)
    selector = ConstructSelector(oracle or DeclarationTypeOracle(tree), source_bytes)
    invocations = find_all(tree.root_node, "call_expression") + find_all(
        tree.root_node, "new_expression"
    )
    found = [selector.match(n) for n in invocations]
    return [m for m in found if m is not None]


def _only(source: str, oracle=None):
    matches = _matches(source, oracle)
    assert len(matches) == 1, matches
    return matches[0]


class TestAppsyncResolver:
    def test_single_function_argument(self):
        match = _only("new AppsyncResolver(($context, id) => $context.arguments);")
        assert match.kind == ConstructKind.APPSYNC_RESOLVER
        assert match.slots == (0,)
        assert match.drop_args == 1

    def test_extra_arguments_do_not_match(self):
        assert _matches("new AppsyncResolver(($context) => 1, options);") == []

    def test_non_function_argument_does_not_match(self):
        assert _matches("new AppsyncResolver(handler);") == []


class TestStepFunctions:
    def test_function_slots(self):
        match = _only('new StepFunction(stack, "Machine", (input) => input);')
        assert match.kind == ConstructKind.STEP_FUNCTION
        assert match.slots == (2,)

    def test_express_variant(self):
        match = _only('new ExpressStepFunction(stack, "M", { timeout: 1 }, function (i) { return i; });')
        assert match.slots == (3,)

    def test_no_function_argument(self):
        assert _matches('new StepFunction(stack, "Machine", handler);') == []


class TestReflect:
    def test_reflect_call(self):
        match = _only("const f = reflect((a: string) => a);")
        assert match.kind == ConstructKind.REFLECT
        assert match.slots == (0,)

    def test_other_function_named_differently(self):
        assert _matches("declare function mirror(f: any): any;\nmirror(() => 1);") == []

    def test_reflect_without_arguments(self):
        assert _matches("reflect();") == []

    def test_reflect_imported_from_runtime(self):
        match = _only('import { reflect as r } from "functionless";\nr(() => 1);')
        assert match.kind == ConstructKind.REFLECT

    def test_reflect_imported_from_elsewhere(self):
        assert _matches('import { reflect } from "./my-reflect";\nreflect(() => 1);') == []


class TestEventBus:
    BUS = 'const bus = new EventBus<any>(stack, "bus");\n'

    def test_when(self):
        match = _only(self.BUS + 'bus.when(stack, "rule", (event) => event.source == "a");')
        assert match.kind == ConstructKind.EVENT_BUS_WHEN
        assert match.slots == (2,)

    def test_when_with_two_arguments_reflects_the_last(self):
        match = _only(self.BUS + 'bus.when("rule", (event) => true);')
        assert match.kind == ConstructKind.EVENT_BUS_WHEN
        assert match.slots == (1,)

    def test_when_without_arguments(self):
        assert _matches(self.BUS + "bus.when();") == []

    def test_rule_map(self):
        source = self.BUS + 'bus.when(stack, "rule", (e) => true).map((e) => e.detail);'
        kinds = sorted(m.kind.value for m in _matches(source))
        assert kinds == ["event_bus_map", "event_bus_when"]

    def test_map_on_plain_array_ignored(self):
        assert _matches("const xs: number[] = [];\nxs.map((x) => x);") == []

    def test_rule_constructor(self):
        match = _only(self.BUS + 'new EventBusRule(stack, "r", bus, (e) => true);')
        assert match.kind == ConstructKind.EVENT_BUS_RULE
        assert match.slots == (3,)

    def test_short_rule_constructor_reflects_the_last_argument(self):
        match = _only(self.BUS + "new EventBusRule(stack, (e) => true);")
        assert match.slots == (1,)

    def test_transform_constructor(self):
        match = _only("new EventBusTransform((e) => e.detail, rule);")
        assert match.kind == ConstructKind.EVENT_BUS_TRANSFORM
        assert match.slots == (0,)


class TestMarkers:
    def test_instance_marker_on_constructed_value(self):
        instance = ResolvedType("Resolver", symbol_kind=SymbolKind.INSTANCE)
        oracle = FakeOracle(
            types={"new Custom((c) => c)": instance},
            properties={
                ("Resolver", "functionlessKind"): ResolvedType(
                    '"AppsyncResolver"', literal="AppsyncResolver"
                )
            },
        )
        match = _only("new Custom((c) => c);", oracle)
        assert match.kind == ConstructKind.APPSYNC_RESOLVER

    def test_plain_constructor_ignored(self):
        assert _matches("new Date(() => 1);") == []

    def test_component_kind_reported(self):
        tree, source_bytes = parse_ts("Table;")
        selector = ConstructSelector(DeclarationTypeOracle(tree), source_bytes)
        table = find_all(tree.root_node, "identifier")[0]
        assert text_of(table) == "Table"
        assert selector.component_kind(table) == "Table"
