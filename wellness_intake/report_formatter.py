"""
Report Formatter Module

Renders a questionnaire submission into the Telegram Markdown message that
is delivered to the consultant.

Rendering Rules:
================

1. Header: questionnaire type and generation date (dd.MM.yyyy, HH:mm)
2. Sections in catalog order; sections without answers are skipped
3. Question numbering starts at the `health` section and runs to the end
4. Each answer resolves option values to their labels; a non-blank
   `<question_id>_additional` text is added as an indented italic line
5. Referral source, if given
6. Contact handles with deep links, if given

The only input that varies between calls is `generated_at`; pass it
explicitly to get byte-identical output.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from wellness_intake.catalog import HEALTH_SECTION_ID, Question, QuestionnaireType, Section
from wellness_intake.translations import get_translations, resolve_language
from wellness_intake.utils import (
    answer_values, clean_handle, format_report_datetime, is_answered, is_blank, is_multi
)


CONTACT_DIVIDER = '━' * 20

TYPE_HEADER_KEYS = {
    QuestionnaireType.INFANT: 'mdInfant',
    QuestionnaireType.CHILD: 'mdChild',
    QuestionnaireType.WOMAN: 'mdWoman',
    QuestionnaireType.MAN: 'mdMan',
}

SOURCE_CHANNEL_LABELS = {
    'telegram': 'Telegram',
    'instagram': 'Instagram',
}


def get_type_header(questionnaire_type: QuestionnaireType, language: str) -> str:
    t = get_translations(language)
    return t[TYPE_HEADER_KEYS[QuestionnaireType(questionnaire_type)]]


def format_answer(question: Question, value: Any, language: str) -> str:
    """
    Format an answer for display.

    Args:
        question: The question answered
        value: The raw answer
        language: Display language

    Returns:
        Option labels joined by ', ' for lists, the option label for a
        single choice, or the raw text
    """
    def label_for(raw: str) -> str:
        option = question.find_option(raw)
        return option.label[language] if option else raw

    if is_multi(value):
        return ', '.join(label_for(v) for v in answer_values(value))
    if question.options:
        return label_for(str(value))
    return str(value)


def _section_has_answers(section: Section, answers: Dict[str, Any]) -> bool:
    return any(is_answered(answers.get(q.id)) for q in section.questions)


def _render_sections(sections: List[Section], answers: Dict[str, Any],
                     additional: Dict[str, str], language: str) -> str:
    text = ''
    question_number = 1
    numbering_started = False
    first_section = True

    for section in sections:
        if not _section_has_answers(section, answers):
            continue

        if not first_section:
            text += '\n'
        text += f'**{section.title[language]}**\n'
        first_section = False

        if section.id == HEALTH_SECTION_ID:
            numbering_started = True

        for question in section.questions:
            value = answers.get(question.id)
            if not is_answered(value):
                continue

            prefix = ''
            if numbering_started:
                prefix = f'{question_number}. '
                question_number += 1

            text += f'{prefix}**{question.label[language]}**\n'
            text += f'➤ **{format_answer(question, value, language)}**'

            extra = additional.get(question.additional_key)
            if not is_blank(extra):
                text += f'\n   _{extra}_'
            text += '\n'

    return text


def _render_source(source: Optional[Dict[str, Any]], language: str) -> str:
    if not source or not source.get('source'):
        return ''

    t = get_translations(language)
    tag = source['source']
    labels = dict(SOURCE_CHANNEL_LABELS, recommendation=t['mdByRecommendation'])

    text = f'\n**{t["mdSource"]}:** {labels.get(tag, tag)}'
    recommender = source.get('recommender') or ''
    if tag == 'recommendation' and recommender.strip():
        text += f'\n➤ _{recommender.strip()}_'
    return text + '\n'


def _render_contacts(contact: Optional[Dict[str, Any]], language: str) -> str:
    contact = contact or {}
    lines = []

    if not is_blank(contact.get('telegram')):
        handle = clean_handle(contact['telegram'])
        lines.append(f'📱 Telegram: @{handle}\n🔗 https://t.me/{handle}')
    if not is_blank(contact.get('instagram')):
        handle = clean_handle(contact['instagram'])
        lines.append(f'📷 Instagram: @{handle}\n🔗 https://instagram.com/{handle}')

    if not lines:
        return ''

    t = get_translations(language)
    text = f'\n{CONTACT_DIVIDER}\n'
    text += f'**{t["mdContacts"]}**\n'
    for line in lines:
        text += f'➤ {line}\n'
    return text


def generate_report(questionnaire_type: QuestionnaireType, sections: List[Section],
                    answers: Dict[str, Any], additional: Dict[str, str],
                    contact: Dict[str, Any], language: str,
                    source: Optional[Dict[str, Any]] = None,
                    generated_at: Optional[datetime] = None,
                    timezone: Optional[str] = None) -> str:
    """
    Render the full report message.

    Args:
        questionnaire_type: Which questionnaire was filled in
        sections: Catalog sections for that type
        answers: Question id -> answer
        additional: Additional text map
        contact: {'telegram': ..., 'instagram': ...}
        language: Report language
        source: {'source': ..., 'recommender': ...}
        generated_at: Timestamp for the header (defaults to now)
        timezone: Timezone for the default timestamp

    Returns:
        Markdown text
    """
    language = resolve_language(language)
    t = get_translations(language)
    answers = answers or {}
    additional = additional or {}

    date_str = format_report_datetime(generated_at, timezone)
    header = get_type_header(questionnaire_type, language)

    text = f'📋 {t["mdNewQuestionnaire"]}: {header}\n\n'
    text += f'📅 {t["mdDate"]}: {date_str}\n\n'
    text += _render_sections(sections, answers, additional, language)
    text += _render_source(source, language)
    text += _render_contacts(contact, language)
    return text


def build_attachment_caption(questionnaire_type: QuestionnaireType,
                             contact: Dict[str, Any], language: str) -> str:
    """Caption for a file sent after the report: type header plus a contact handle."""
    t = get_translations(language)
    caption = f'{t["mdAttachmentCaption"]}: {get_type_header(questionnaire_type, language)}'

    contact = contact or {}
    for name in ('telegram', 'instagram'):
        if not is_blank(contact.get(name)):
            caption += f' (@{clean_handle(contact[name])})'
            break
    return caption
