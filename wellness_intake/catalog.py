"""
Question Catalog Module

Static description of the questionnaire sections and questions for each
audience type. Every label carries both languages.

Catalog Layout:
===============

- INFANT: about_child -> health -> final
- CHILD:  about_child -> health -> final
- WOMAN:  personal -> health -> womens_health -> final
- MAN:    personal -> health -> final

Question numbering in the generated report starts at the `health` section,
so every catalog keeps its introductory section(s) before `health`.

Question ids are unique within a catalog. Ids shared between catalogs have
the same meaning everywhere, which lets the conditional validation rules
apply to whichever catalog contains the trigger question.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class QuestionnaireType(str, Enum):
    """Audience categories, one catalog each."""
    INFANT = 'infant'
    CHILD = 'child'
    WOMAN = 'woman'
    MAN = 'man'


class QuestionType(str, Enum):
    """Input kinds a question can have."""
    TEXT = 'text'
    NUMBER = 'number'
    RADIO = 'radio'
    CHECKBOX = 'checkbox'


HEALTH_SECTION_ID = 'health'
OTHER_OPTION = 'other'


@dataclass
class Option:
    """A selectable answer for radio/checkbox questions."""
    value: str
    label: Dict[str, str]


@dataclass
class Question:
    """A single question."""
    id: str
    type: QuestionType
    label: Dict[str, str]
    required: bool = False
    options: List[Option] = field(default_factory=list)

    def find_option(self, value: str) -> Optional[Option]:
        for option in self.options:
            if option.value == value:
                return option
        return None

    def has_option(self, value: str) -> bool:
        return self.find_option(value) is not None

    @property
    def additional_key(self) -> str:
        return f'{self.id}_additional'


@dataclass
class Section:
    """An ordered group of questions."""
    id: str
    title: Dict[str, str]
    questions: List[Question] = field(default_factory=list)


def _l(ru: str, en: str) -> Dict[str, str]:
    return {'ru': ru, 'en': en}


def _opt(value: str, ru: str, en: str) -> Option:
    return Option(value=value, label=_l(ru, en))


def _yes_no() -> List[Option]:
    return [_opt('yes', 'Да', 'Yes'), _opt('no', 'Нет', 'No')]


# Shared questions - factories so each catalog owns its own instances

def _main_concern() -> Question:
    return Question(
        'main_concern', QuestionType.TEXT,
        _l('Что вас беспокоит больше всего?', 'What concerns you the most?'),
        required=True,
    )


def _digestion() -> Question:
    return Question(
        'digestion', QuestionType.CHECKBOX,
        _l('Есть ли проблемы с пищеварением?', 'Are there any digestive issues?'),
        options=[
            _opt('no_issues', 'Нет проблем', 'No issues'),
            _opt('bloating', 'Вздутие', 'Bloating'),
            _opt('constipation', 'Запоры', 'Constipation'),
            _opt('heartburn', 'Изжога', 'Heartburn'),
            _opt(OTHER_OPTION, 'Другое', 'Other'),
        ],
    )


def _sleep() -> Question:
    return Question(
        'sleep', QuestionType.RADIO,
        _l('Как вы оцениваете сон?', 'How would you rate sleep?'),
        options=[
            _opt('good', 'Хороший', 'Good'),
            _opt('hard_to_fall_asleep', 'Трудно заснуть', 'Hard to fall asleep'),
            _opt('wake_at_night', 'Частые пробуждения', 'Frequent waking'),
            _opt(OTHER_OPTION, 'Другое', 'Other'),
        ],
    )


def _illness_antibiotics() -> Question:
    return Question(
        'illness_antibiotics', QuestionType.CHECKBOX,
        _l('Болезни и лекарства за последний год', 'Illnesses and medications over the last year'),
        options=[
            _opt('rarely_ill', 'Болею редко', 'Rarely ill'),
            _opt('took_antibiotics', 'Принимал(а) антибиотики', 'Took antibiotics'),
            _opt('took_other_medications', 'Принимал(а) другие препараты', 'Took other medications'),
        ],
    )


def _medications() -> Question:
    return Question(
        'medications', QuestionType.RADIO,
        _l('Принимаете ли вы лекарства постоянно?', 'Do you take any medications regularly?'),
        required=True,
        options=_yes_no(),
    )


def _operations() -> Question:
    return Question(
        'operations', QuestionType.RADIO,
        _l('Были ли операции?', 'Have there been any operations?'),
        options=_yes_no(),
    )


def _what_else() -> Question:
    return Question(
        'what_else', QuestionType.RADIO,
        _l('Хотите что-то добавить?', 'Is there anything else you would like to add?'),
        options=_yes_no(),
    )


def _final_section() -> Section:
    return Section('final', _l('Дополнительно', 'Additional'), [_what_else()])


def _adult_personal() -> Section:
    return Section('personal', _l('Личные данные', 'Personal details'), [
        Question('name', QuestionType.TEXT, _l('Имя', 'Name'), required=True),
        Question('age', QuestionType.NUMBER, _l('Возраст', 'Age'), required=True),
        Question('height', QuestionType.NUMBER, _l('Рост, см', 'Height, cm')),
        Question('weight', QuestionType.NUMBER, _l('Вес, кг', 'Weight, kg')),
    ])


def _adult_health() -> Section:
    return Section(HEALTH_SECTION_ID, _l('Здоровье', 'Health'), [
        _main_concern(),
        Question(
            'weight_satisfaction', QuestionType.CHECKBOX,
            _l('Довольны ли вы своим весом?', 'Are you satisfied with your weight?'),
            required=True,
            options=[
                _opt('satisfied', 'Да, доволен(льна)', 'Yes, satisfied'),
                _opt('want_to_lose', 'Хочу похудеть', 'Want to lose weight'),
                _opt('want_to_gain', 'Хочу набрать вес', 'Want to gain weight'),
            ],
        ),
        Question(
            'pressure', QuestionType.CHECKBOX,
            _l('Артериальное давление', 'Blood pressure'),
            options=[
                _opt('normal', 'Нормальное', 'Normal'),
                _opt('low', 'Пониженное', 'Low'),
                _opt('high', 'Повышенное', 'High'),
                _opt('unstable', 'Скачет', 'Unstable'),
            ],
        ),
        Question(
            'stones', QuestionType.CHECKBOX,
            _l('Есть ли камни?', 'Do you have any stones?'),
            options=[
                _opt('no_stones', 'Нет', 'No'),
                _opt('stones_kidneys', 'В почках', 'Kidney stones'),
                _opt('stones_gallbladder', 'В желчном пузыре', 'Gallbladder stones'),
                _opt('both', 'И там, и там', 'Both'),
            ],
        ),
        Question(
            'cysts_polyps', QuestionType.CHECKBOX,
            _l('Кисты, полипы, новообразования', 'Cysts, polyps, growths'),
            options=[
                _opt('none', 'Нет', 'None'),
                _opt('cysts', 'Кисты', 'Cysts'),
                _opt('polyps', 'Полипы', 'Polyps'),
                _opt('fibroids', 'Миомы', 'Fibroids'),
                _opt('tumors', 'Опухоли', 'Tumors'),
                _opt('hernias', 'Грыжи', 'Hernias'),
            ],
        ),
        Question(
            'operations_injuries', QuestionType.CHECKBOX,
            _l('Операции и травмы', 'Operations and injuries'),
            options=[
                _opt('none', 'Не было', 'None'),
                _opt('operations', 'Операции', 'Operations'),
                _opt('organ_removed', 'Удалён орган', 'Organ removed'),
                _opt('injuries', 'Травмы', 'Injuries'),
            ],
        ),
        _illness_antibiotics(),
        _medications(),
        _digestion(),
        _sleep(),
        Question(
            'covid_status', QuestionType.RADIO,
            _l('COVID-19', 'COVID-19'),
            options=[
                _opt('no_covid', 'Не болел(а) и не прививался(ась)', 'Neither ill nor vaccinated'),
                _opt('had_covid', 'Болел(а)', 'Had COVID'),
                _opt('vaccinated', 'Прививался(ась)', 'Vaccinated'),
                _opt('both', 'Болел(а) и прививался(ась)', 'Both'),
            ],
        ),
        Question(
            'covid_times', QuestionType.NUMBER,
            _l('Сколько раз болели?', 'How many times were you ill?'),
        ),
        Question(
            'covid_complications', QuestionType.CHECKBOX,
            _l('Осложнения после болезни', 'Complications after the illness'),
            options=[
                _opt('no_complications', 'Нет', 'None'),
                _opt('fatigue', 'Слабость', 'Fatigue'),
                _opt('loss_of_smell', 'Потеря обоняния', 'Loss of smell'),
                _opt('breathing', 'Проблемы с дыханием', 'Breathing problems'),
                _opt(OTHER_OPTION, 'Другое', 'Other'),
            ],
        ),
    ])


def _child_intro(age_question: Question) -> Section:
    return Section('about_child', _l('О ребёнке', 'About the child'), [
        Question('child_name', QuestionType.TEXT, _l('Имя ребёнка', "Child's name"), required=True),
        age_question,
    ])


def _infant_catalog() -> List[Section]:
    intro = _child_intro(
        Question('age_months', QuestionType.NUMBER, _l('Возраст, мес.', 'Age, months'), required=True)
    )
    intro.questions.extend([
        Question('birth_weight', QuestionType.NUMBER, _l('Вес при рождении, г', 'Birth weight, g')),
        Question(
            'birth_type', QuestionType.RADIO,
            _l('Роды', 'Birth'),
            options=[
                _opt('natural', 'Естественные', 'Natural'),
                _opt('caesarean', 'Кесарево сечение', 'Caesarean section'),
            ],
        ),
    ])
    health = Section(HEALTH_SECTION_ID, _l('Здоровье', 'Health'), [
        _main_concern(),
        Question(
            'feeding', QuestionType.RADIO,
            _l('Вскармливание', 'Feeding'),
            required=True,
            options=[
                _opt('breast', 'Грудное', 'Breastfeeding'),
                _opt('formula', 'Искусственное', 'Formula'),
                _opt('mixed', 'Смешанное', 'Mixed'),
                _opt(OTHER_OPTION, 'Другое', 'Other'),
            ],
        ),
        _digestion(),
        _sleep(),
        Question(
            'skin', QuestionType.CHECKBOX,
            _l('Состояние кожи', 'Skin condition'),
            options=[
                _opt('clear', 'Чистая', 'Clear'),
                _opt('rash', 'Сыпь', 'Rash'),
                _opt('dryness', 'Сухость', 'Dryness'),
                _opt('diathesis', 'Диатез', 'Diathesis'),
                _opt(OTHER_OPTION, 'Другое', 'Other'),
            ],
        ),
        _illness_antibiotics(),
        _operations(),
        _medications(),
    ])
    return [intro, health, _final_section()]


def _child_catalog() -> List[Section]:
    intro = _child_intro(
        Question('age', QuestionType.NUMBER, _l('Возраст, лет', 'Age, years'), required=True)
    )
    intro.questions.extend([
        Question('height', QuestionType.NUMBER, _l('Рост, см', 'Height, cm')),
        Question('weight', QuestionType.NUMBER, _l('Вес, кг', 'Weight, kg')),
    ])
    health = Section(HEALTH_SECTION_ID, _l('Здоровье', 'Health'), [
        _main_concern(),
        Question(
            'appetite', QuestionType.RADIO,
            _l('Аппетит', 'Appetite'),
            options=[
                _opt('good', 'Хороший', 'Good'),
                _opt('poor', 'Плохой', 'Poor'),
                _opt('selective', 'Избирательный', 'Selective'),
                _opt(OTHER_OPTION, 'Другое', 'Other'),
            ],
        ),
        _digestion(),
        _sleep(),
        Question(
            'allergies', QuestionType.CHECKBOX,
            _l('Аллергии', 'Allergies'),
            options=[
                _opt('no_allergies', 'Нет', 'None'),
                _opt('food', 'Пищевая', 'Food'),
                _opt('pollen', 'На пыльцу', 'Pollen'),
                _opt('medication', 'На лекарства', 'Medication'),
                _opt(OTHER_OPTION, 'Другое', 'Other'),
            ],
        ),
        _illness_antibiotics(),
        Question(
            'injuries', QuestionType.CHECKBOX,
            _l('Травмы', 'Injuries'),
            options=[
                _opt('no_issues', 'Не было', 'None'),
                _opt('fractures', 'Переломы', 'Fractures'),
                _opt('concussion', 'Сотрясение', 'Concussion'),
                _opt('sprains', 'Растяжения', 'Sprains'),
                _opt(OTHER_OPTION, 'Другое', 'Other'),
            ],
        ),
        _operations(),
        _medications(),
    ])
    return [intro, health, _final_section()]


def _woman_catalog() -> List[Section]:
    womens_health = Section('womens_health', _l('Женское здоровье', "Women's health"), [
        Question(
            'cycle', QuestionType.RADIO,
            _l('Менструальный цикл', 'Menstrual cycle'),
            options=[
                _opt('regular', 'Регулярный', 'Regular'),
                _opt('irregular', 'Нерегулярный', 'Irregular'),
                _opt('menopause', 'Менопауза', 'Menopause'),
                _opt(OTHER_OPTION, 'Другое', 'Other'),
            ],
        ),
        Question(
            'pregnancy_problems', QuestionType.RADIO,
            _l('Были ли проблемы с беременностью?', 'Have there been any pregnancy problems?'),
            options=_yes_no(),
        ),
    ])
    return [_adult_personal(), _adult_health(), womens_health, _final_section()]


def _man_catalog() -> List[Section]:
    return [_adult_personal(), _adult_health(), _final_section()]


CATALOG_BUILDERS = {
    QuestionnaireType.INFANT: _infant_catalog,
    QuestionnaireType.CHILD: _child_catalog,
    QuestionnaireType.WOMAN: _woman_catalog,
    QuestionnaireType.MAN: _man_catalog,
}

CATALOGS: Dict[QuestionnaireType, List[Section]] = {
    questionnaire_type: builder()
    for questionnaire_type, builder in CATALOG_BUILDERS.items()
}


def parse_questionnaire_type(value: str) -> Optional[QuestionnaireType]:
    """Convert a raw string to a QuestionnaireType, or None if unknown."""
    try:
        return QuestionnaireType(value)
    except ValueError:
        return None


def get_sections(questionnaire_type: QuestionnaireType) -> List[Section]:
    """Get the ordered sections for a questionnaire type."""
    return CATALOGS[QuestionnaireType(questionnaire_type)]


def iter_questions(sections: List[Section]):
    """Yield every question of a catalog in order."""
    for section in sections:
        for question in section.questions:
            yield question


def find_question(sections: List[Section], question_id: str) -> Optional[Question]:
    for question in iter_questions(sections):
        if question.id == question_id:
            return question
    return None
