"""Structural validation of parsed rules."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from skillsbuild.core.models import IMPACT_LEVELS, ImpactLevel, Rule, ValidationResult
from skillsbuild.core.parser import RuleParser

__all__ = [
    "DEFAULT_BAD_KEYWORDS",
    "DEFAULT_GOOD_KEYWORDS",
    "LabelClassifier",
    "RuleValidator",
    "validate_rule",
    "validate_rule_file",
]

DEFAULT_BAD_KEYWORDS: tuple[str, ...] = ("incorrect", "wrong", "bad")
DEFAULT_GOOD_KEYWORDS: tuple[str, ...] = ("correct", "good", "usage", "implementation", "example", "recommended")


@dataclass(frozen=True)
class LabelClassifier:
    """Keyword predicate deciding whether an example label shows a bad or good pattern.

    Matching is a case-insensitive substring test, so ``"Incorrect"`` is both
    bad and good (it contains ``"correct"``).
    """

    bad_keywords: tuple[str, ...] = DEFAULT_BAD_KEYWORDS
    good_keywords: tuple[str, ...] = DEFAULT_GOOD_KEYWORDS

    def is_bad(self, label: str) -> bool:
        lower = label.lower()
        return any(keyword.lower() in lower for keyword in self.bad_keywords)

    def is_good(self, label: str) -> bool:
        lower = label.lower()
        return any(keyword.lower() in lower for keyword in self.good_keywords)


class RuleValidator:
    def __init__(self, classifier: LabelClassifier | None = None, min_explanation_length: int = 50) -> None:
        self.classifier = classifier or LabelClassifier()
        self.min_explanation_length = min_explanation_length

    def validate(self, rule: Rule) -> ValidationResult:
        """Apply the structural content checks to an already parsed rule."""
        result = ValidationResult(rule=rule)
        errors, warnings = result.errors, result.warnings

        if not rule.title or not rule.title.strip():
            errors.append("Missing or empty title")

        if not rule.explanation or not rule.explanation.strip():
            errors.append("Missing or empty explanation")
        elif len(rule.explanation) < self.min_explanation_length:
            warnings.append(f"Explanation is shorter than {self.min_explanation_length} characters")

        if not rule.examples:
            errors.append("Missing examples (need at least one bad and one good example)")
        else:
            self._check_examples(rule, errors, warnings)

        if not rule.impact:
            errors.append(f"Missing impact level. Must be one of: {', '.join(IMPACT_LEVELS)}")
        elif not ImpactLevel.is_valid(rule.impact):
            errors.append(f"Invalid impact level: {rule.impact}. Must be one of: {', '.join(IMPACT_LEVELS)}")

        if not rule.impact_description:
            warnings.append("Missing impactDescription (recommended for quantifying benefit)")
        return result

    def validate_file(self, file_path: Path | str, section_map: dict[str, int]) -> ValidationResult:
        parsed = RuleParser(section_map).parse_file(file_path)
        if not parsed.success or parsed.rule is None:
            return ValidationResult(errors=list(parsed.errors), warnings=list(parsed.warnings))
        result = self.validate(parsed.rule)
        return ValidationResult(
            errors=parsed.errors + result.errors,
            warnings=parsed.warnings + result.warnings,
            rule=parsed.rule,
        )

    def _check_examples(self, rule: Rule, errors: list[str], warnings: list[str]) -> None:
        has_bad = any(self.classifier.is_bad(e.label) for e in rule.examples)
        has_good = any(self.classifier.is_good(e.label) for e in rule.examples)
        if not has_bad and not has_good:
            errors.append("Missing bad/incorrect and good/correct examples")
        elif not has_bad:
            warnings.append("Missing bad/incorrect example (recommended for clarity)")
        elif not has_good:
            errors.append("Missing good/correct example")

        if not any(e.code and e.code.strip() for e in rule.examples):
            errors.append("Examples have no code")

        for example in rule.examples:
            if example.code and not example.language:
                warnings.append(f'Example "{example.label}" missing language specification')


def validate_rule(rule: Rule, classifier: LabelClassifier | None = None, min_explanation_length: int = 50) -> ValidationResult:
    return RuleValidator(classifier, min_explanation_length).validate(rule)


def validate_rule_file(
    file_path: Path | str,
    section_map: dict[str, int],
    classifier: LabelClassifier | None = None,
    min_explanation_length: int = 50,
) -> ValidationResult:
    """Parse and validate one reference file; never raises for malformed content."""
    return RuleValidator(classifier, min_explanation_length).validate_file(file_path, section_map)
