"""
Translations Module

Per-language strings for page copy, validation messages, report headers
and delivery errors. Keys mirror the validation error codes so a code can
be looked up directly.
"""

from enum import Enum
from typing import Dict, Optional


class Language(str, Enum):
    """Supported interface languages."""
    RU = 'ru'
    EN = 'en'


DEFAULT_LANGUAGE = Language.RU


TRANSLATIONS: Dict[str, Dict[str, str]] = {
    Language.RU.value: {
        # Site chrome
        'siteTitle': 'Анкета здоровья',
        'siteName': 'Wellness-анкета',
        'welcome': 'Добро пожаловать',
        'questionnaireInstruction': (
            'Выберите анкету и ответьте на вопросы как можно подробнее. '
            'Чем точнее ответы, тем точнее будут рекомендации.'
        ),
        'consultantSignature': 'С заботой о вашем здоровье, Виктория',
        'channelLink': 'КРАСОТА И УХОД',
        'privacyLink': 'Политика конфиденциальности',
        'backToHome': 'Вернуться на главную',
        'pageNotFound': 'Страница не найдена',

        # Category cards
        'infantTitle': 'Младенец',
        'infantDescription': 'Анкета для детей до 1 года',
        'childTitle': 'Ребёнок',
        'childDescription': 'Анкета для детей от 1 года',
        'womanTitle': 'Женщина',
        'womanDescription': 'Анкета для женщин',
        'manTitle': 'Мужчина',
        'manDescription': 'Анкета для мужчин',

        # Questionnaire form
        'additionalPlaceholder': 'Уточните, пожалуйста',
        'contactsTitle': 'Контакты для связи',
        'telegramLabel': 'Telegram',
        'instagramLabel': 'Instagram',
        'sourceTitle': 'Откуда вы о нас узнали?',
        'sourceRecommenderLabel': 'Кто вас порекомендовал?',
        'attachmentLabel': 'Прикрепить файл (анализы, фото)',
        'submit': 'Отправить анкету',
        'submitSuccess': 'Анкета отправлена. Спасибо!',
        'attachmentFailed': 'Анкета отправлена, но файл отправить не удалось',
        'fixErrors': 'Пожалуйста, исправьте ошибки в анкете',

        # Validation messages
        'required': 'Обязательное поле',
        'selectAtLeastOne': 'Выберите хотя бы один вариант',
        'tooLong': 'Слишком длинный ответ, сократите его',
        'telegramRequired': 'Укажите ваш Telegram',
        'atLeastOneContactRequired': 'Укажите хотя бы один контакт: Telegram или Instagram',
        'telegram_too_short': 'Имя пользователя Telegram должно содержать минимум 5 символов',
        'telegram_too_long': 'Имя пользователя Telegram не может быть длиннее 32 символов',
        'telegram_invalid_chars': 'Допустимы только латинские буквы, цифры и подчёркивание',
        'instagram_too_long': 'Имя пользователя Instagram не может быть длиннее 30 символов',
        'instagram_invalid_chars': 'Допустимы только латинские буквы, цифры, точки и подчёркивание',
        'instagram_dots': 'Имя пользователя не может начинаться или заканчиваться точкой и содержать две точки подряд',

        # Report
        'mdNewQuestionnaire': 'Новая анкета',
        'mdDate': 'Дата',
        'mdInfant': 'Младенец',
        'mdChild': 'Ребёнок',
        'mdWoman': 'Женщина',
        'mdMan': 'Мужчина',
        'mdContacts': 'Контакты',
        'mdSource': 'Откуда узнали',
        'mdByRecommendation': 'По рекомендации',
        'mdAttachmentCaption': 'Файл к анкете',

        # Delivery
        'configError': 'Telegram Bot Token or Chat ID not configured.',
        'timeoutError': 'Превышено время ожидания. Проверьте интернет-соединение.',
        'networkError': 'Ошибка сети',
        'telegramApiError': 'Ошибка Telegram API',
        'fileSendError': 'Ошибка отправки файла',

        # Privacy page
        'privacyTitle': 'Политика конфиденциальности',
        'privacyConsultant': 'Виктория Савая — владелец сайта',
        'privacyDataTitle': 'Обработка данных',
        'privacyDataText': (
            'Незаконченная анкета хранится как черновик не дольше 24 часов и удаляется после отправки. '
            'Отправленная анкета не сохраняется в базе данных: она передаётся напрямую в Telegram-чат '
            'консультанта и нигде больше не обрабатывается и не накапливается.'
        ),
    },
    Language.EN.value: {
        'siteTitle': 'Health Questionnaire',
        'siteName': 'Wellness Questionnaire',
        'welcome': 'Welcome',
        'questionnaireInstruction': (
            'Choose a questionnaire and answer the questions in as much detail as you can. '
            'The more precise the answers, the more precise the recommendations.'
        ),
        'consultantSignature': 'With care for your health, Viktoria',
        'channelLink': 'BEAUTY AND CARE',
        'privacyLink': 'Privacy Policy',
        'backToHome': 'Back to home',
        'pageNotFound': 'Page not found',

        'infantTitle': 'Infant',
        'infantDescription': 'Questionnaire for children under 1 year',
        'childTitle': 'Child',
        'childDescription': 'Questionnaire for children from 1 year',
        'womanTitle': 'Woman',
        'womanDescription': 'Questionnaire for women',
        'manTitle': 'Man',
        'manDescription': 'Questionnaire for men',

        'additionalPlaceholder': 'Please specify',
        'contactsTitle': 'Contact details',
        'telegramLabel': 'Telegram',
        'instagramLabel': 'Instagram',
        'sourceTitle': 'How did you hear about us?',
        'sourceRecommenderLabel': 'Who recommended us?',
        'attachmentLabel': 'Attach a file (test results, photos)',
        'submit': 'Send questionnaire',
        'submitSuccess': 'Questionnaire sent. Thank you!',
        'attachmentFailed': 'Questionnaire sent, but the file could not be delivered',
        'fixErrors': 'Please fix the errors in the questionnaire',

        'required': 'This field is required',
        'selectAtLeastOne': 'Select at least one option',
        'tooLong': 'The answer is too long, please shorten it',
        'telegramRequired': 'Enter your Telegram username',
        'atLeastOneContactRequired': 'Provide at least one contact: Telegram or Instagram',
        'telegram_too_short': 'Telegram username must be at least 5 characters',
        'telegram_too_long': 'Telegram username cannot be longer than 32 characters',
        'telegram_invalid_chars': 'Only Latin letters, digits and underscores are allowed',
        'instagram_too_long': 'Instagram username cannot be longer than 30 characters',
        'instagram_invalid_chars': 'Only Latin letters, digits, dots and underscores are allowed',
        'instagram_dots': 'Username cannot start or end with a dot or contain two dots in a row',

        'mdNewQuestionnaire': 'New questionnaire',
        'mdDate': 'Date',
        'mdInfant': 'Infant',
        'mdChild': 'Child',
        'mdWoman': 'Woman',
        'mdMan': 'Man',
        'mdContacts': 'Contacts',
        'mdSource': 'Source',
        'mdByRecommendation': 'By recommendation',
        'mdAttachmentCaption': 'Questionnaire attachment',

        'configError': 'Telegram Bot Token or Chat ID not configured.',
        'timeoutError': 'The request timed out. Check your internet connection.',
        'networkError': 'Network error',
        'telegramApiError': 'Telegram API error',
        'fileSendError': 'Failed to send file',

        'privacyTitle': 'Privacy Policy',
        'privacyConsultant': 'Viktoria Savaa — site owner',
        'privacyDataTitle': 'Data Processing',
        'privacyDataText': (
            'An unfinished questionnaire is kept as a draft for no longer than 24 hours and is '
            'deleted once it is sent. A sent questionnaire is not saved in any database: it goes '
            "directly to the consultant's Telegram chat and is not processed or accumulated anywhere else."
        ),
    },
}


def resolve_language(value: Optional[str], default: str = DEFAULT_LANGUAGE.value) -> str:
    """Return a supported language code, falling back to the default."""
    if isinstance(value, str) and value in TRANSLATIONS:
        return value
    return default if default in TRANSLATIONS else DEFAULT_LANGUAGE.value


def get_translations(language: str) -> Dict[str, str]:
    """Get the string table for a language (default language if unknown)."""
    return TRANSLATIONS[resolve_language(language)]

