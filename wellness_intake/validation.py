"""
Validation of questionnaire submissions.

Validation Rules Documentation:
===============================

1. REQUIRED FIELDS
   - Checkbox: at least one option selected (code: selectAtLeastOne)
   - Number: present and parses as a number (code: required)
   - Text/radio: present and non-blank (code: required)

2. "OTHER" OPTION
   - Any radio/checkbox question offering an `other` option
   - If `other` is selected, `<question_id>_additional` must be non-blank

3. CONDITIONAL ADDITIONAL FIELDS (see CONDITIONAL_RULES)
   - operations == yes                      -> operations_additional
   - injuries has anything but no_issues    -> injuries_additional
   - medications == yes                     -> medications_additional
   - what_else == yes                       -> what_else_additional
   - pregnancy_problems == yes              -> pregnancy_problems_additional
   - illness_antibiotics has antibiotics or
     other medications                      -> illness_antibiotics_additional
   - weight_satisfaction wants lose/gain    -> weight_satisfaction_additional
   - stones in kidneys/gallbladder/both     -> stones_additional
   - operations_injuries has operations,
     organ_removed or injuries              -> operations_injuries_additional
   - pressure has high                      -> pressure_additional
   - cysts_polyps has cysts, polyps,
     fibroids, tumors or hernias            -> cysts_polyps_additional

4. DEPENDENT ANSWERS (see DEPENDENT_ANSWER_RULES)
   - covid_status had_covid/both -> covid_times (number), covid_complications (non-empty)

5. CONTACT
   - At least one of telegram/instagram (error key: contact)
   - Each provided handle must pass its syntax check

6. LENGTH
   - Free text is never rewritten; any value longer than MAX_TEXT_LENGTH
     characters is rejected (code: tooLong)

Every rule is evaluated on every call; errors are keyed by field id, so the
same input always produces the same report.
"""

import re
from typing import Any, Callable, Dict, Iterable, List, Optional
from dataclasses import dataclass, field

from wellness_intake.catalog import OTHER_OPTION, QuestionType, Section, iter_questions
from wellness_intake.translations import get_translations
from wellness_intake.utils import (
    answer_values, clean_handle, is_blank, is_multi, is_numeric, scalar_answer
)


@dataclass
class ValidationError:
    """A single validation error for one field."""
    field: str
    message: str
    code: str


@dataclass
class ValidationResult:
    """Container for validation results, keyed by field id."""
    errors: Dict[str, ValidationError] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, field: str, message: str, code: str = 'required'):
        """Add (or replace) the error for a field."""
        self.errors[field] = ValidationError(field, message, code)

    def codes(self) -> Dict[str, str]:
        return {name: error.code for name, error in self.errors.items()}

    def messages(self) -> Dict[str, str]:
        return {name: error.message for name, error in self.errors.items()}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return {
            'ok': self.is_valid,
            'errors': self.messages(),
            'codes': self.codes(),
        }


# Error codes
CODE_REQUIRED = 'required'
CODE_SELECT_AT_LEAST_ONE = 'selectAtLeastOne'
CODE_CONTACT_REQUIRED = 'atLeastOneContactRequired'
CODE_EMPTY = 'empty'
CODE_TOO_LONG = 'tooLong'

# Longest free-text value accepted in any answer, additional text, contact or source field
MAX_TEXT_LENGTH = 10000

# Handle limits
TELEGRAM_MIN_LENGTH = 5
TELEGRAM_MAX_LENGTH = 32
INSTAGRAM_MAX_LENGTH = 30

# Regex patterns
TELEGRAM_PATTERN = re.compile(r'^[a-zA-Z0-9_]+$')
INSTAGRAM_PATTERN = re.compile(r'^[a-zA-Z0-9._]+$')
INSTAGRAM_DOTS_PATTERN = re.compile(r'^\.|\.\.|\.$')

CONTACT_FIELDS = ('telegram', 'instagram')


@dataclass
class ContactValidation:
    """Outcome of a contact handle syntax check."""
    valid: bool
    error: Optional[str] = None


def validate_telegram_username(raw: str) -> ContactValidation:
    """Check a Telegram username (with or without a leading '@')."""
    value = clean_handle(raw)
    if not value:
        return ContactValidation(False, CODE_EMPTY)
    if len(value) < TELEGRAM_MIN_LENGTH:
        return ContactValidation(False, 'telegram_too_short')
    if len(value) > TELEGRAM_MAX_LENGTH:
        return ContactValidation(False, 'telegram_too_long')
    if not TELEGRAM_PATTERN.match(value):
        return ContactValidation(False, 'telegram_invalid_chars')
    return ContactValidation(True)


def validate_instagram_username(raw: str) -> ContactValidation:
    """Check an Instagram username (with or without a leading '@')."""
    value = clean_handle(raw)
    if not value:
        return ContactValidation(False, CODE_EMPTY)
    if len(value) > INSTAGRAM_MAX_LENGTH:
        return ContactValidation(False, 'instagram_too_long')
    if not INSTAGRAM_PATTERN.match(value):
        return ContactValidation(False, 'instagram_invalid_chars')
    if INSTAGRAM_DOTS_PATTERN.search(value):
        return ContactValidation(False, 'instagram_dots')
    return ContactValidation(True)


HANDLE_VALIDATORS: Dict[str, Callable[[str], ContactValidation]] = {
    'telegram': validate_telegram_username,
    'instagram': validate_instagram_username,
}


# Trigger predicates

AnswerPredicate = Callable[[Any], bool]


def answer_equals(expected: str) -> AnswerPredicate:
    """Scalar answer equals a value; list answers never match."""
    def predicate(value: Any) -> bool:
        return scalar_answer(value) == expected
    return predicate


def any_value_except(excluded: str) -> AnswerPredicate:
    """Any selected value other than `excluded`; scalars count as one value."""
    def predicate(value: Any) -> bool:
        return any(v != excluded for v in answer_values(value))
    return predicate


def contains_any(values: Iterable[str], multi_only: bool = False) -> AnswerPredicate:
    """
    At least one of `values` is selected.

    With multi_only, scalar answers are ignored.
    """
    wanted = frozenset(values)

    def predicate(value: Any) -> bool:
        return any(v in wanted for v in answer_values(value, wrap_scalar=not multi_only))
    return predicate


@dataclass
class ConditionalRule:
    """A trigger answer that makes an additional text field mandatory."""
    trigger_id: str
    target_key: str
    predicate: AnswerPredicate


@dataclass
class DependentAnswerRule:
    """A trigger answer that makes other questions mandatory."""
    trigger_id: str
    predicate: AnswerPredicate
    required: Dict[str, QuestionType]


CONDITIONAL_RULES: List[ConditionalRule] = [
    ConditionalRule('operations', 'operations_additional', answer_equals('yes')),
    ConditionalRule('injuries', 'injuries_additional', any_value_except('no_issues')),
    ConditionalRule('medications', 'medications_additional', answer_equals('yes')),
    ConditionalRule('what_else', 'what_else_additional', answer_equals('yes')),
    ConditionalRule('pregnancy_problems', 'pregnancy_problems_additional', answer_equals('yes')),
    ConditionalRule(
        'illness_antibiotics', 'illness_antibiotics_additional',
        contains_any(['took_antibiotics', 'took_other_medications']),
    ),
    ConditionalRule(
        'weight_satisfaction', 'weight_satisfaction_additional',
        contains_any(['want_to_lose', 'want_to_gain'], multi_only=True),
    ),
    ConditionalRule(
        'stones', 'stones_additional',
        contains_any(['stones_kidneys', 'stones_gallbladder', 'both'], multi_only=True),
    ),
    ConditionalRule(
        'operations_injuries', 'operations_injuries_additional',
        contains_any(['operations', 'organ_removed', 'injuries'], multi_only=True),
    ),
    ConditionalRule(
        'pressure', 'pressure_additional',
        contains_any(['high'], multi_only=True),
    ),
    ConditionalRule(
        'cysts_polyps', 'cysts_polyps_additional',
        contains_any(['cysts', 'polyps', 'fibroids', 'tumors', 'hernias'], multi_only=True),
    ),
]

DEPENDENT_ANSWER_RULES: List[DependentAnswerRule] = [
    DependentAnswerRule(
        'covid_status',
        contains_any(['had_covid', 'both']),
        required={
            'covid_times': QuestionType.NUMBER,
            'covid_complications': QuestionType.CHECKBOX,
        },
    ),
]


def _check_answer(question_type: QuestionType, value: Any) -> Optional[str]:
    """Return the error code for a missing answer, or None if it is present."""
    if question_type == QuestionType.CHECKBOX:
        if not value or (is_multi(value) and len(value) == 0):
            return CODE_SELECT_AT_LEAST_ONE
        return None

    if question_type == QuestionType.NUMBER:
        return None if is_numeric(value) else CODE_REQUIRED

    if is_multi(value):
        return None if value else CODE_REQUIRED
    return CODE_REQUIRED if is_blank(value) else None


def validate_required(sections: List[Section], answers: Dict[str, Any],
                      result: ValidationResult, t: Dict[str, str]):
    """Required questions must be answered."""
    for question in iter_questions(sections):
        if not question.required:
            continue
        code = _check_answer(question.type, answers.get(question.id))
        if code:
            result.add_error(question.id, t[code], code)


def validate_other_options(sections: List[Section], answers: Dict[str, Any],
                           additional: Dict[str, str], result: ValidationResult,
                           t: Dict[str, str]):
    """Selecting an `other` option requires its additional text."""
    for question in iter_questions(sections):
        if question.type not in (QuestionType.RADIO, QuestionType.CHECKBOX):
            continue
        if not question.has_option(OTHER_OPTION):
            continue
        if OTHER_OPTION not in answer_values(answers.get(question.id)):
            continue
        key = question.additional_key
        if is_blank(additional.get(key)):
            result.add_error(key, t[CODE_REQUIRED], CODE_REQUIRED)


def validate_conditional_rules(answers: Dict[str, Any], additional: Dict[str, str],
                               result: ValidationResult, t: Dict[str, str],
                               rules: Optional[List[ConditionalRule]] = None):
    """Apply the conditional additional-field table."""
    for rule in (CONDITIONAL_RULES if rules is None else rules):
        value = answers.get(rule.trigger_id)
        if not value or not rule.predicate(value):
            continue
        if is_blank(additional.get(rule.target_key)):
            result.add_error(rule.target_key, t[CODE_REQUIRED], CODE_REQUIRED)


def validate_dependent_answers(answers: Dict[str, Any], result: ValidationResult,
                               t: Dict[str, str]):
    """Apply rules that make follow-up questions mandatory."""
    for rule in DEPENDENT_ANSWER_RULES:
        value = answers.get(rule.trigger_id)
        if not value or not rule.predicate(value):
            continue
        for question_id, question_type in rule.required.items():
            code = _check_answer(question_type, answers.get(question_id))
            if code:
                result.add_error(question_id, t[code], code)


def validate_contact(contact: Dict[str, Any], result: ValidationResult, t: Dict[str, str]):
    """At least one contact handle; each provided handle must be well-formed."""
    contact = contact or {}
    provided = [name for name in CONTACT_FIELDS if not is_blank(contact.get(name))]

    if not provided:
        message = t.get(CODE_CONTACT_REQUIRED) or t['telegramRequired']
        result.add_error('contact', message, CODE_CONTACT_REQUIRED)
        return

    for name in provided:
        check = HANDLE_VALIDATORS[name](str(contact[name]))
        if check.valid or not check.error or check.error == CODE_EMPTY:
            continue
        if check.error in t:
            result.add_error(name, t[check.error], check.error)
        else:
            result.add_error(name, t[CODE_REQUIRED], CODE_REQUIRED)


def validate_text_lengths(groups: List[Dict[str, Any]], result: ValidationResult,
                          t: Dict[str, str]):
    """Free text is delivered as typed; values over MAX_TEXT_LENGTH are rejected."""
    for group in groups:
        for key, value in group.items():
            if any(len(v) > MAX_TEXT_LENGTH for v in answer_values(value)):
                result.add_error(key, t[CODE_TOO_LONG], CODE_TOO_LONG)


def validate_form(sections: List[Section], answers: Dict[str, Any],
                  contact: Dict[str, Any], language: str,
                  additional: Optional[Dict[str, str]] = None,
                  source: Optional[Dict[str, Any]] = None) -> ValidationResult:
    """
    Validate a questionnaire submission.

    Args:
        sections: Catalog sections for the questionnaire type
        answers: Question id -> answer (string or list of strings)
        contact: {'telegram': ..., 'instagram': ...}
        language: Language for error messages
        additional: Additional text map (<question_id>_additional -> text)
        source: Referral source {'source': ..., 'recommender': ...}

    Returns:
        ValidationResult with one entry per invalid field
    """
    result = ValidationResult()
    t = get_translations(language)
    answers = answers or {}
    additional = additional or {}

    validate_required(sections, answers, result, t)
    validate_other_options(sections, answers, additional, result, t)
    validate_conditional_rules(answers, additional, result, t)
    validate_dependent_answers(answers, result, t)
    validate_contact(contact, result, t)
    validate_text_lengths([answers, additional, contact or {}, source or {}], result, t)

    return result
