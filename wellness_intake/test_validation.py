"""
Unit tests for validation module.
"""

import pytest

from wellness_intake.catalog import QuestionnaireType, get_sections
from wellness_intake.translations import TRANSLATIONS, resolve_language
from wellness_intake.utils import is_numeric
from wellness_intake.validation import (
    CONDITIONAL_RULES, MAX_TEXT_LENGTH, ConditionalRule, ValidationResult,
    any_value_except, validate_conditional_rules, validate_contact, validate_form,
    validate_instagram_username, validate_telegram_username,
)


RU = TRANSLATIONS['ru']


def valid_man_answers(**overrides):
    answers = {
        'name': 'Иван',
        'age': '35',
        'main_concern': 'Боли в спине',
        'weight_satisfaction': ['satisfied'],
        'medications': 'no',
    }
    answers.update(overrides)
    return answers


def validate_man(answers, additional=None, contact=None, language='ru'):
    if contact is None:
        contact = {'telegram': 'ivan_petrov', 'instagram': ''}
    return validate_form(
        get_sections(QuestionnaireType.MAN), answers, contact, language, additional
    )


class TestValidationResult:
    def test_initially_valid(self):
        result = ValidationResult()
        assert result.is_valid is True
        assert len(result.errors) == 0

    def test_add_error(self):
        result = ValidationResult()
        result.add_error('field', 'message', 'code')
        assert result.is_valid is False
        assert result.errors['field'].message == 'message'
        assert result.errors['field'].code == 'code'

    def test_same_field_keeps_one_error(self):
        result = ValidationResult()
        result.add_error('field', 'first')
        result.add_error('field', 'second')
        assert len(result.errors) == 1
        assert result.errors['field'].message == 'second'

    def test_to_dict(self):
        result = ValidationResult()
        result.add_error('field', 'message', 'code')
        d = result.to_dict()
        assert d == {'ok': False, 'errors': {'field': 'message'}, 'codes': {'field': 'code'}}


class TestRequiredRule:
    def test_complete_form_is_valid(self):
        assert validate_man(valid_man_answers()).is_valid

    def test_missing_text(self):
        result = validate_man(valid_man_answers(name='   '))
        assert result.codes() == {'name': 'required'}
        assert result.errors['name'].message == RU['required']

    def test_empty_checkbox(self):
        result = validate_man(valid_man_answers(weight_satisfaction=[]))
        assert result.codes() == {'weight_satisfaction': 'selectAtLeastOne'}
        assert result.errors['weight_satisfaction'].message == RU['selectAtLeastOne']

    @pytest.mark.parametrize('age', [
        'тридцать', '1_000', 'inf', 'infinity', 'nan', '-0x1A', '1,5', '12 лет',
    ])
    def test_number_must_parse(self, age):
        result = validate_man(valid_man_answers(age=age))
        assert result.codes() == {'age': 'required'}

    @pytest.mark.parametrize('age', [
        '35', ' 35 ', '-2', '+3.5', '.5', '5.', '1e3', '2E-1',
        'Infinity', '-Infinity', '0x1A', '0b101', '0o17',
    ])
    def test_number_spellings_accepted(self, age):
        assert is_numeric(age) is True
        assert validate_man(valid_man_answers(age=age)).is_valid

    def test_whitespace_number_is_missing(self):
        result = validate_man(valid_man_answers(age='  '))
        assert 'age' in result.errors

    def test_numeric_types_accepted(self):
        assert validate_man(valid_man_answers(age=35)).is_valid
        assert validate_man(valid_man_answers(age='35.5')).is_valid

    def test_missing_radio(self):
        answers = valid_man_answers()
        del answers['medications']
        result = validate_man(answers)
        assert result.codes() == {'medications': 'required'}

    def test_english_messages(self):
        result = validate_man(valid_man_answers(name=''), language='en')
        assert result.errors['name'].message == TRANSLATIONS['en']['required']


class TestOtherOptionRule:
    def test_other_needs_details(self):
        result = validate_man(valid_man_answers(digestion=['bloating', 'other']))
        assert result.codes() == {'digestion_additional': 'required'}

    def test_other_with_details(self):
        result = validate_man(
            valid_man_answers(sleep='other'),
            additional={'sleep_additional': 'Сплю днём'},
        )
        assert result.is_valid

    def test_blank_details_rejected(self):
        result = validate_man(
            valid_man_answers(sleep='other'),
            additional={'sleep_additional': '   '},
        )
        assert 'sleep_additional' in result.errors


class TestConditionalRules:
    @pytest.mark.parametrize('trigger_id, value, target_key', [
        ('operations', 'yes', 'operations_additional'),
        ('injuries', ['fractures'], 'injuries_additional'),
        ('medications', 'yes', 'medications_additional'),
        ('what_else', 'yes', 'what_else_additional'),
        ('pregnancy_problems', 'yes', 'pregnancy_problems_additional'),
        ('illness_antibiotics', ['took_antibiotics'], 'illness_antibiotics_additional'),
        ('illness_antibiotics', 'took_other_medications', 'illness_antibiotics_additional'),
        ('weight_satisfaction', ['want_to_lose'], 'weight_satisfaction_additional'),
        ('stones', ['both'], 'stones_additional'),
        ('operations_injuries', ['organ_removed'], 'operations_injuries_additional'),
        ('pressure', ['low', 'high'], 'pressure_additional'),
        ('cysts_polyps', ['hernias'], 'cysts_polyps_additional'),
    ])
    def test_trigger_requires_additional(self, trigger_id, value, target_key):
        result = ValidationResult()
        validate_conditional_rules({trigger_id: value}, {}, result, RU)
        assert result.codes() == {target_key: 'required'}

        result = ValidationResult()
        validate_conditional_rules({trigger_id: value}, {target_key: 'details'}, result, RU)
        assert result.is_valid

    @pytest.mark.parametrize('trigger_id, value', [
        ('operations', 'no'),
        ('operations', ['yes']),
        ('injuries', ['no_issues']),
        ('injuries', []),
        ('illness_antibiotics', ['rarely_ill']),
        ('weight_satisfaction', ['satisfied']),
        ('stones', ['no_stones']),
        ('pressure', ['normal', 'unstable']),
        ('cysts_polyps', ['none']),
    ])
    def test_not_triggered(self, trigger_id, value):
        result = ValidationResult()
        validate_conditional_rules({trigger_id: value}, {}, result, RU)
        assert result.is_valid

    @pytest.mark.parametrize('trigger_id, value', [
        ('weight_satisfaction', 'want_to_lose'),
        ('stones', 'stones_kidneys'),
        ('operations_injuries', 'injuries'),
        ('pressure', 'high'),
        ('cysts_polyps', 'cysts'),
    ])
    def test_scalar_ignored_by_multi_select_rules(self, trigger_id, value):
        result = ValidationResult()
        validate_conditional_rules({trigger_id: value}, {}, result, RU)
        assert result.is_valid

    def test_scalar_injury_counts_as_single_value(self):
        result = ValidationResult()
        validate_conditional_rules({'injuries': 'sprains'}, {}, result, RU)
        assert 'injuries_additional' in result.errors

    def test_custom_rule_table(self):
        rules = [ConditionalRule('skin', 'skin_additional', any_value_except('clear'))]
        result = ValidationResult()
        validate_conditional_rules({'skin': ['rash']}, {}, result, RU, rules=rules)
        assert result.codes() == {'skin_additional': 'required'}

    def test_every_rule_has_distinct_target(self):
        targets = [rule.target_key for rule in CONDITIONAL_RULES]
        assert len(targets) == len(set(targets))

    def test_operations_details_in_full_form(self):
        answers = {
            'child_name': 'Маша',
            'age': '5',
            'main_concern': 'Аппетит',
            'medications': 'no',
            'operations': 'yes',
        }
        contact = {'telegram': '', 'instagram': 'masha.mom'}
        sections = get_sections(QuestionnaireType.CHILD)

        result = validate_form(sections, answers, contact, 'ru', {})
        assert result.codes() == {'operations_additional': 'required'}

        result = validate_form(
            sections, answers, contact, 'ru', {'operations_additional': 'Аппендицит'}
        )
        assert result.is_valid


class TestCovidRule:
    def test_had_covid_requires_follow_ups(self):
        result = validate_man(valid_man_answers(covid_status='had_covid'))
        assert result.codes() == {
            'covid_times': 'required',
            'covid_complications': 'selectAtLeastOne',
        }

    def test_follow_ups_answered(self):
        result = validate_man(valid_man_answers(
            covid_status='both', covid_times='2', covid_complications=['fatigue']
        ))
        assert result.is_valid

    def test_times_must_be_numeric(self):
        result = validate_man(valid_man_answers(
            covid_status='had_covid', covid_times='дважды', covid_complications=['fatigue']
        ))
        assert result.codes() == {'covid_times': 'required'}

    def test_vaccinated_only(self):
        assert validate_man(valid_man_answers(covid_status='vaccinated')).is_valid


class TestContactRule:
    def test_no_contact(self):
        result = validate_man(valid_man_answers(), contact={'telegram': ' ', 'instagram': ''})
        assert result.codes() == {'contact': 'atLeastOneContactRequired'}
        assert result.errors['contact'].message == RU['atLeastOneContactRequired']

    def test_missing_contact_object(self):
        result = validate_man(valid_man_answers(), contact={})
        assert 'contact' in result.errors

    def test_instagram_only(self):
        result = validate_man(valid_man_answers(), contact={'telegram': '', 'instagram': '@ivan.petrov'})
        assert result.is_valid

    def test_bad_telegram_handle(self):
        result = validate_man(valid_man_answers(), contact={'telegram': '@ab', 'instagram': ''})
        assert result.codes() == {'telegram': 'telegram_too_short'}
        assert result.errors['telegram'].message == RU['telegram_too_short']

    def test_both_handles_checked(self):
        result = validate_man(
            valid_man_answers(), contact={'telegram': 'ivan-petrov', 'instagram': 'a..b'}
        )
        assert result.codes() == {
            'telegram': 'telegram_invalid_chars',
            'instagram': 'instagram_dots',
        }


    def test_untranslated_handle_error_falls_back_to_required(self):
        t = {key: value for key, value in RU.items() if key != 'telegram_too_short'}
        result = ValidationResult()
        validate_contact({'telegram': '@ab', 'instagram': ''}, result, t)
        assert result.codes() == {'telegram': 'required'}
        assert result.errors['telegram'].message == RU['required']


class TestTextLength:
    def test_long_additional_text_rejected(self):
        result = validate_man(
            valid_man_answers(sleep='other'),
            additional={'sleep_additional': 'a' * (MAX_TEXT_LENGTH + 1)},
        )
        assert result.codes() == {'sleep_additional': 'tooLong'}
        assert result.errors['sleep_additional'].message == RU['tooLong']

    def test_limit_is_inclusive(self):
        result = validate_man(valid_man_answers(main_concern='a' * MAX_TEXT_LENGTH))
        assert result.is_valid

    def test_long_source_rejected(self):
        result = validate_form(
            get_sections(QuestionnaireType.MAN), valid_man_answers(),
            {'telegram': 'ivan_petrov', 'instagram': ''}, 'ru', {},
            {'source': 'recommendation', 'recommender': 'a' * (MAX_TEXT_LENGTH + 1)},
        )
        assert result.codes() == {'recommender': 'tooLong'}

    def test_markup_characters_allowed(self):
        result = validate_man(
            valid_man_answers(pressure=['high']),
            additional={'pressure_additional': '140/90 через <10 мин, <b>потом</b> >20 мин норма'},
        )
        assert result.is_valid


class TestResolveLanguage:
    @pytest.mark.parametrize('value', [None, '', 'de', ['en'], {'en': True}, 5])
    def test_unsupported_values_fall_back(self, value):
        assert resolve_language(value) == 'ru'

    def test_supported(self):
        assert resolve_language('en') == 'en'


class TestHandleValidators:
    @pytest.mark.parametrize('handle', ['valid_user1', '@valid_user1', 'abcde', 'a' * 32])
    def test_valid_telegram(self, handle):
        assert validate_telegram_username(handle).valid is True

    @pytest.mark.parametrize('handle, code', [
        ('', 'empty'),
        ('@', 'empty'),
        ('@ab', 'telegram_too_short'),
        ('a' * 33, 'telegram_too_long'),
        ('user.name', 'telegram_invalid_chars'),
        ('имя_пользователя', 'telegram_invalid_chars'),
    ])
    def test_invalid_telegram(self, handle, code):
        check = validate_telegram_username(handle)
        assert check.valid is False
        assert check.error == code

    @pytest.mark.parametrize('handle', ['a', 'ivan.petrov', '@ivan_petrov', 'a' * 30])
    def test_valid_instagram(self, handle):
        assert validate_instagram_username(handle).valid is True

    @pytest.mark.parametrize('handle, code', [
        ('', 'empty'),
        ('a' * 31, 'instagram_too_long'),
        ('ivan-petrov', 'instagram_invalid_chars'),
        ('.ivan', 'instagram_dots'),
        ('ivan.', 'instagram_dots'),
        ('a..b', 'instagram_dots'),
    ])
    def test_invalid_instagram(self, handle, code):
        check = validate_instagram_username(handle)
        assert check.valid is False
        assert check.error == code


class TestDeterminism:
    def test_same_input_same_result(self):
        answers = valid_man_answers(name='', covid_status='had_covid', pressure=['high'])
        contact = {'telegram': '@ab', 'instagram': ''}
        first = validate_man(answers, contact=contact).to_dict()
        second = validate_man(answers, contact=contact).to_dict()
        assert first == second
        assert set(first['codes']) == {
            'name', 'covid_times', 'covid_complications', 'pressure_additional', 'telegram'
        }
