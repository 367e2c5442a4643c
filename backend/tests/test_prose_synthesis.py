"""
Tests for rebuilding structured solutions from plain-text model answers.
"""

import pytest

from mathtutor.schemas.solution import SolutionStep
from mathtutor.services.prose_synthesis import (
    PLACEHOLDER_ANSWER,
    SYNTHESIZED_CONFIDENCE,
    clean_prose,
    extract_final_answer,
    format_number,
    synthesize_solution,
    synthesize_steps,
)


class TestCleanProse:

    @pytest.mark.unit
    def test_strips_json_punctuation_and_labels(self):
        text = '{"steps": [{"step_number": 1, "description": "Subtract 2", "reasoning": "isolate"}]}'
        cleaned = clean_prose(text)
        for token in ("{", "}", "[", "]", '"', "step_number", "description:", "reasoning:"):
            assert token not in cleaned
        assert "Subtract 2" in cleaned

    @pytest.mark.unit
    def test_collapses_whitespace_and_arrows(self):
        assert clean_prose("x + 1 → 2\n\n  x   = 1") == "x + 1 = 2 x = 1"


class TestFormatNumber:

    @pytest.mark.unit
    @pytest.mark.parametrize("value,expected", [(4.0, "4"), (-3.0, "-3"), (2.5, "2.5"), (1 / 3, "0.3333")])
    def test_format(self, value, expected):
        assert format_number(value) == expected


class TestLinearEquationRule:

    @pytest.mark.unit
    def test_plus_form(self):
        solution = synthesize_solution("The answer is four.", "Solve 3x + 2 = 14", "algebra", "llama3")

        assert len(solution.steps) == 3
        assert solution.steps[0].description.startswith("Subtract 2")
        assert solution.steps[1].mathematical_expression == "3x = 12"
        assert solution.steps[2].mathematical_expression == "x = 4"
        assert solution.final_answer == "4"
        assert solution.confidence == SYNTHESIZED_CONFIDENCE
        assert solution.backend_id == "llama3"
        assert solution.explanation == "Solution to the algebra problem: Solve 3x + 2 = 14"

    @pytest.mark.unit
    def test_other_variable(self):
        solution = synthesize_solution("", "Find y when 2y + 8 = 20", "algebra", "llama3")
        assert solution.steps[2].mathematical_expression == "y = 6"
        assert solution.final_answer == "6"

    @pytest.mark.unit
    def test_minus_form_adds_constant(self):
        solution = synthesize_solution("", "Solve 3x - 7 = 14", "algebra", "llama3")
        assert solution.steps[0].description.startswith("Add 7")
        assert solution.steps[1].mathematical_expression == "3x = 21"
        assert solution.final_answer == "7"

    @pytest.mark.unit
    def test_non_integer_result(self):
        solution = synthesize_solution("", "Solve 4x + 1 = 11", "algebra", "llama3")
        assert solution.final_answer == "2.5"

    @pytest.mark.unit
    def test_zero_coefficient_falls_through_to_generic(self):
        rule, steps, _ = synthesize_steps("Solve 0x + 1 = 5")
        assert rule == "generic"
        assert len(steps) == 2

    @pytest.mark.unit
    @pytest.mark.parametrize("question", [
        "Solve x^2 + 3x + 2 = 0",
        "Solve x² + 3x + 2 = 0",
        "Solve -3x + 2 = 14",
        "Solve 2x + 3x + 1 = 11",
        "Solve 1.5x + 2 = 14",
        "Solve 3x + 2 = 14y",
    ])
    def test_partial_equation_is_not_solved_as_linear(self, question):
        solution = synthesize_solution("prose", question, "algebra", "llama3")
        assert len(solution.steps) == 2
        assert solution.final_answer == PLACEHOLDER_ANSWER


class TestDerivativeRule:

    @pytest.mark.unit
    @pytest.mark.parametrize("question", [
        "Find the derivative of f(x) = x² + 3x - 5",
        "Differentiate x^2 + 3x - 5",
    ])
    def test_canned_walkthrough(self, question):
        solution = synthesize_solution("some prose", question, "calculus", "llama3")
        assert len(solution.steps) == 5
        assert [s.step_number for s in solution.steps] == [1, 2, 3, 4, 5]
        assert solution.final_answer == "2x + 3"


class TestGenericRule:

    @pytest.mark.unit
    def test_prose_becomes_reasoning(self):
        solution = synthesize_solution(
            "Use the formula area = pi r squared",
            "What is the area of a circle with radius 3?",
            "geometry",
            "llama3",
        )
        assert len(solution.steps) == 2
        assert solution.steps[0].mathematical_expression == "What is the area of a circle with radius 3?"
        assert solution.steps[1].reasoning == "Use the formula area = pi r squared"

    @pytest.mark.unit
    def test_empty_prose_uses_default_reasoning(self):
        _, steps, _ = synthesize_steps("Explain prime numbers", "")
        assert steps[1].reasoning.startswith("We apply the necessary")


class TestExtractFinalAnswer:

    def _step(self, expression):
        return SolutionStep(step_number=1, description="d", mathematical_expression=expression, reasoning="r")

    @pytest.mark.unit
    def test_prefers_assignment(self):
        assert extract_final_answer([self._step("2 + 2 so x = 4")], "q") == "4"

    @pytest.mark.unit
    def test_falls_back_to_any_number(self):
        assert extract_final_answer([self._step("about 12.5 units")], "q") == "12.5"

    @pytest.mark.unit
    def test_uses_override_table(self):
        steps = [self._step("Use the correct formula or method")]
        assert extract_final_answer(steps, "Solve 2x + 5 = 13") == "4"

    @pytest.mark.unit
    def test_placeholder_when_nothing_found(self):
        assert extract_final_answer([self._step(None)], "Explain limits") == PLACEHOLDER_ANSWER
        assert extract_final_answer([], "Explain limits") == PLACEHOLDER_ANSWER
