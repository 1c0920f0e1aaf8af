"""Tests for the cyclomatic complexity analyzer and rule."""

import json

import pytest

from treemetrics.analysis.complexity import compute_complexity
from treemetrics.core.config import Config
from treemetrics.core.engine import AnalysisEngine
from treemetrics.core.finding import IssueLocation
from treemetrics.parsing.tree import SourceLocation


def complexities(parsed):
    return {result.name: result.complexity for result in compute_complexity(parsed)}


class TestDecisionPoints:
    """Each decision point adds exactly one to the function's score."""

    def test_function_without_branches(self, parse_js):
        """Test a function without decision points scores one."""
        assert complexities(parse_js("function foo() { return 1; }")) == {"foo": 1}

    def test_if_and_else_if(self, parse_js):
        """Test each if adds one and else adds nothing."""
        code = "function foo(a, b) { if (a) {} else if (b) {} else {} }"
        assert complexities(parse_js(code)) == {"foo": 3}

    def test_loops(self, parse_js):
        """Test every loop flavor adds one."""
        code = """
function foo(a) {
  for (let i = 0; i < a; i++) {}
  for (const k in a) {}
  for (const v of a) {}
  while (a) {}
  do {} while (a);
}
"""
        assert complexities(parse_js(code)) == {"foo": 6}

    def test_switch_cases_but_not_default(self, parse_js):
        """Test case clauses count and default does not."""
        code = """
function foo(a) {
  switch (a) {
    case 1: return 1;
    case 2: return 2;
    default: return 3;
  }
}
"""
        assert complexities(parse_js(code)) == {"foo": 3}

    def test_default_only_switch(self, parse_js):
        """Test a switch with only a default clause."""
        code = "function foo(a) { switch (a) { default: break; } }"
        assert complexities(parse_js(code)) == {"foo": 1}

    def test_each_logical_operator_counts(self, parse_js):
        """Test each logical operator adds one."""
        code = "function foo(a, b, c) { return a && b || c; }"
        assert complexities(parse_js(code)) == {"foo": 3}

    def test_nullish_coalescing_does_not_count(self, parse_js):
        """Test nullish coalescing is not a decision point."""
        code = "function foo(a, b) { return a ?? b; }"
        assert complexities(parse_js(code)) == {"foo": 1}

    def test_ternary_in_arrow_function(self, parse_js):
        """Test a ternary inside an expression-bodied arrow."""
        assert complexities(parse_js("const f = (a) => a ? 1 : 2;")) == {"f": 2}

    @pytest.mark.parametrize(
        "snippet",
        [
            "if (a) {}",
            "for (;;) { break; }",
            "for (const k in a) {}",
            "for (const v of a) {}",
            "while (a) {}",
            "do {} while (a);",
            "b = a ? 1 : 2;",
            "b = a && b;",
            "b = a || b;",
            "switch (a) { case 1: break; }",
        ],
    )
    def test_one_more_decision_point_adds_one(self, parse_js, snippet):
        """Test one extra decision point adds exactly one."""
        once = complexities(parse_js(f"function f(a, b) {{ {snippet} }}"))["f"]
        twice = complexities(parse_js(f"function f(a, b) {{ {snippet} {snippet} }}"))["f"]
        assert once == 2
        assert twice == once + 1


class TestFunctionBoundaries:
    """Nested functions are scored on their own, never by their parent."""

    def test_nested_function_declaration(self, parse_js):
        """Test an inner function is scored apart from its parent."""
        code = """
function outer(a) {
  if (a) {}
  function inner(b) {
    if (b) {}
    if (b) {}
  }
  return inner;
}
"""
        assert complexities(parse_js(code)) == {"outer": 2, "inner": 3}

    def test_nested_callback(self, parse_js):
        """Test a callback is scored on its own."""
        code = "function outer(xs) { return xs.map(x => x && x.y); }"
        results = compute_complexity(parse_js(code))
        assert [(r.name, r.complexity) for r in results] == [("outer", 1), ("<anonymous>", 2)]

    def test_methods(self, parse_js):
        """Test class and object methods."""
        code = """
class A {
  run(a) { if (a) {} }
}
const o = { go(a) { return a || a.b; } };
"""
        assert complexities(parse_js(code)) == {"run": 2, "go": 2}

    def test_generator_function(self, parse_js):
        """Test generator functions."""
        code = "function* gen(a) { while (a) { yield a; } }"
        assert complexities(parse_js(code)) == {"gen": 2}

    def test_typescript_function(self, parse_tsx):
        """Test a typed TypeScript function."""
        code = "function typed(a: number): string { return a > 1 ? 'a' : 'b'; }"
        assert complexities(parse_tsx(code)) == {"typed": 2}


class TestExclusions:
    """Immediately invoked functions and define() wrappers are not scored."""

    def test_immediately_invoked_function(self, parse_js):
        """Test an immediately invoked function is not scored."""
        code = "(function () { if (a) {} })();"
        assert complexities(parse_js(code)) == {}

    def test_immediately_invoked_with_inner_call(self, parse_js):
        """Test the call-inside-parentheses invocation form."""
        code = "(function () { if (a) {} }());"
        assert complexities(parse_js(code)) == {}

    def test_new_on_function_expression(self, parse_js):
        """Test new on a function expression is not scored."""
        code = "var x = new (function () { if (a) {} })();"
        assert complexities(parse_js(code)) == {}

    def test_immediately_invoked_arrow_is_scored(self, parse_js):
        """Test an immediately invoked arrow is still scored."""
        code = "(() => { if (a) {} })();"
        assert complexities(parse_js(code)) == {"<anonymous>": 2}

    def test_define_wrapper(self, parse_js):
        """Test a function passed to define is not scored."""
        code = 'define(["dep"], function (dep) { if (dep) {} });'
        assert complexities(parse_js(code)) == {}

    def test_function_nested_in_define_is_scored(self, parse_js):
        """Test functions inside a define wrapper are scored."""
        code = """
define(function () {
  function helper(a) { return a ? 1 : 2; }
  return helper;
});
"""
        assert complexities(parse_js(code)) == {"helper": 2}

    def test_other_callee_is_not_a_module_definition(self, parse_js):
        """Test only define counts as a module definition."""
        code = "require(function () { if (a) {} });"
        assert complexities(parse_js(code)) == {"<anonymous>": 2}


class TestLocations:
    """Complexity tokens point at signatures, keywords and operators."""

    def test_signature_spans_up_to_parameters(self, parse_js):
        """Test the signature ends before the body."""
        results = compute_complexity(parse_js("function foo(a, b) {\n  return a;\n}"))
        assert results[0].scope.signature == SourceLocation(1, 0, 1, 18)
        assert results[0].tokens[0].location == SourceLocation(1, 0, 1, 18)

    def test_arrow_signature_ends_at_arrow(self, parse_js):
        """Test an arrow signature includes the arrow."""
        results = compute_complexity(parse_js("const f = (a) => a;"))
        assert results[0].scope.signature == SourceLocation(1, 10, 1, 16)

    def test_keyword_and_operator_tokens(self, parse_js):
        """Test tokens sit on keywords and operators."""
        results = compute_complexity(parse_js("function foo(a) {\n  if (a && a.b) {}\n}"))
        assert [token.location for token in results[0].tokens] == [
            SourceLocation(1, 0, 1, 15),
            SourceLocation(2, 2, 2, 4),
            SourceLocation(2, 8, 2, 10),
        ]

    def test_ternary_token_is_question_mark(self, parse_js):
        """Test a ternary token sits on the question mark."""
        results = compute_complexity(parse_js("function f(a) { return a ? 1 : 2; }"))
        assert results[0].tokens[1].location == SourceLocation(1, 25, 1, 26)


class TestComplexityRule:
    """Issues carry the encoded payload consumed by the host."""

    CODE = "function foo(a) { if (a) {} }"

    def test_issue_one_over_threshold(self, strict_config):
        """Test an issue one over the threshold."""
        result = AnalysisEngine(strict_config).analyze_source(self.CODE, "javascript", "a.js")

        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.rule_id == "cyclomatic-complexity"
        assert issue.function_name == "foo"
        assert issue.location == IssueLocation(1, 0, 1, 15)
        assert issue.payload.cost == 1
        assert len(issue.payload.secondary_locations) == 2

    def test_encoded_message(self, strict_config):
        """Test the encoded issue payload."""
        result = AnalysisEngine(strict_config).analyze_source(self.CODE, "javascript", "a.js")

        assert json.loads(result.issues[0].message) == {
            "message": "Function has a complexity of 2 which is greater than 1 authorized.",
            "cost": 1,
            "secondaryLocations": [
                {"line": 1, "column": 0, "endLine": 1, "endColumn": 15, "message": "+1"},
                {"line": 1, "column": 18, "endLine": 1, "endColumn": 20, "message": "+1"},
            ],
        }

    def test_no_issue_at_threshold(self):
        """Test a function at the threshold is not reported."""
        config = Config.from_dict({"rules": {"options": {"cyclomatic-complexity": {"threshold": 2}}}})
        result = AnalysisEngine(config).analyze_source(self.CODE, "javascript", "a.js")
        assert result.issues == []

    def test_default_threshold(self):
        """Test the default threshold of ten."""
        result = AnalysisEngine(Config.load(None)).analyze_source(self.CODE, "javascript", "a.js")
        assert result.issues == []

    def test_nested_function_reported_separately(self, strict_config):
        """Test nested functions are reported on their own."""
        code = "function outer() { return function inner(a) { return a && a.b; }; }"
        result = AnalysisEngine(strict_config).analyze_source(code, "javascript", "a.js")
        assert [issue.function_name for issue in result.issues] == ["inner"]

    def test_failing_function_does_not_hide_others(self, strict_config, monkeypatch):
        """Test a failing function does not hide the others."""
        from treemetrics.rules import complexity as rule_module

        real = rule_module.compute_function_complexity

        def flaky(parsed, scope):
            if scope.name == "first":
                raise RuntimeError("boom")
            return real(parsed, scope)

        monkeypatch.setattr(rule_module, "compute_function_complexity", flaky)
        code = "function first(a) { if (a) {} }\nfunction second(a) { if (a) {} }"
        result = AnalysisEngine(strict_config).analyze_source(code, "javascript", "a.js")
        assert [issue.function_name for issue in result.issues] == ["second"]
