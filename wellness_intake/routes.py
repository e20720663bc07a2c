"""
Flask routes for the questionnaire site.

Pages:
- /                         landing page with the four questionnaire cards
- /questionnaire/<type>     questionnaire form
- /privacy                  privacy policy

API:
- /api/draft/<type>         load / save / abandon the in-progress draft
- /api/validate/<type>      validate answers without sending
- /api/submit/<type>        validate, format and deliver to Telegram
"""

import json
from typing import Any, Dict, Optional, Tuple

from flask import (
    Blueprint, render_template, request, jsonify,
    session, current_app, abort
)
from werkzeug.utils import secure_filename

from wellness_intake.catalog import QuestionnaireType, get_sections, parse_questionnaire_type
from wellness_intake.delivery import TelegramDelivery
from wellness_intake.form_store import DatabaseStorage, FormStateStore
from wellness_intake.report_formatter import build_attachment_caption, generate_report
from wellness_intake.security import (
    as_dict, get_client_id, get_client_ip, limiter, RATE_LIMITS
)
from wellness_intake.translations import TRANSLATIONS, get_translations, resolve_language
from wellness_intake.validation import validate_form


# Create blueprints
main_bp = Blueprint('main', __name__)
api_bp = Blueprint('api', __name__, url_prefix='/api')


CATEGORY_ORDER = [
    QuestionnaireType.INFANT,
    QuestionnaireType.CHILD,
    QuestionnaireType.WOMAN,
    QuestionnaireType.MAN,
]


def get_language() -> str:
    """
    Resolve the active language: ?lang= (remembered in the session),
    then the session, then the configured default.
    """
    default = current_app.config.get('DEFAULT_LANGUAGE', 'ru')
    requested = request.args.get('lang')
    if requested and requested in TRANSLATIONS:
        session['language'] = requested
        return requested
    return resolve_language(session.get('language'), default)


def get_form_store() -> FormStateStore:
    """Draft store scoped to the current browser."""
    return FormStateStore(DatabaseStorage(get_client_id()))


def _questionnaire_type_or_404(value: str) -> QuestionnaireType:
    questionnaire_type = parse_questionnaire_type(value)
    if questionnaire_type is None:
        abort(404)
    return questionnaire_type


def _bad_request(message: str, code: str = 'missing_payload'):
    return jsonify({'ok': False, 'errors': {'': message}, 'codes': {'': code}}), 400


def _extract_submission(payload: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Pull the form members out of a request payload."""
    return {
        'answers': as_dict(payload.get('formData')),
        'additional': as_dict(payload.get('additionalData')),
        'contact': as_dict(payload.get('contactData')),
        'source': as_dict(payload.get('sourceData')),
    }


def _read_json_payload() -> Optional[Dict[str, Any]]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return None
    return payload


def _read_submit_payload() -> Tuple[Optional[Dict[str, Any]], Any]:
    """
    Read the submit body: JSON, or multipart with a `payload` JSON field
    and an optional `attachment` file.
    """
    if request.mimetype == 'multipart/form-data':
        raw = request.form.get('payload', '')
        try:
            payload = json.loads(raw)
        except ValueError:
            return None, None
        if not isinstance(payload, dict):
            return None, None
        return payload, request.files.get('attachment')

    return _read_json_payload(), None


# Main routes
@main_bp.route('/')
def index():
    """Render the landing page."""
    t = get_translations(get_language())
    categories = [
        {
            'type': questionnaire_type.value,
            'title': t[f'{questionnaire_type.value}Title'],
            'description': t[f'{questionnaire_type.value}Description'],
        }
        for questionnaire_type in CATEGORY_ORDER
    ]
    return render_template('index.html', categories=categories)


@main_bp.route('/questionnaire/<questionnaire_type>')
def questionnaire(questionnaire_type: str):
    """Render a questionnaire form from its catalog."""
    questionnaire_type = _questionnaire_type_or_404(questionnaire_type)
    t = get_translations(get_language())
    return render_template(
        'questionnaire.html',
        questionnaire_type=questionnaire_type.value,
        questionnaire_title=t[f'{questionnaire_type.value}Title'],
        sections=get_sections(questionnaire_type),
    )


@main_bp.route('/privacy')
def privacy():
    """Render the privacy policy."""
    return render_template('privacy.html')


# API Routes
@api_bp.route('/draft/<questionnaire_type>', methods=['GET'])
@limiter.limit(RATE_LIMITS['draft'])
def api_load_draft(questionnaire_type: str):
    """Return the saved draft for this browser, or null."""
    questionnaire_type = _questionnaire_type_or_404(questionnaire_type)
    snapshot = get_form_store().load(questionnaire_type, get_language())
    return jsonify({
        'ok': True,
        'snapshot': snapshot.to_dict() if snapshot else None,
    }), 200


@api_bp.route('/draft/<questionnaire_type>', methods=['PUT'])
@limiter.limit(RATE_LIMITS['draft'])
def api_save_draft(questionnaire_type: str):
    """Save the in-progress answers for this browser."""
    questionnaire_type = _questionnaire_type_or_404(questionnaire_type)
    payload = _read_json_payload()
    if payload is None:
        return _bad_request('No JSON payload provided')

    form = _extract_submission(payload)
    get_form_store().save(
        questionnaire_type, get_language(),
        form['answers'], form['additional'], form['contact'], form['source'] or None
    )
    return jsonify({'ok': True}), 200


@api_bp.route('/draft/<questionnaire_type>', methods=['DELETE'])
@limiter.limit(RATE_LIMITS['draft'])
def api_clear_draft(questionnaire_type: str):
    """Abandon the draft for this browser."""
    questionnaire_type = _questionnaire_type_or_404(questionnaire_type)
    get_form_store().clear(questionnaire_type, get_language())
    return jsonify({'ok': True}), 200


@api_bp.route('/validate/<questionnaire_type>', methods=['POST'])
@limiter.limit(RATE_LIMITS['validate'])
def api_validate(questionnaire_type: str):
    """
    Validate a questionnaire without sending it.

    Returns:
        JSON response with field errors (422) or ok (200)
    """
    questionnaire_type = _questionnaire_type_or_404(questionnaire_type)
    try:
        payload = _read_json_payload()
        if payload is None:
            return _bad_request('No JSON payload provided')

        language = resolve_language(payload.get('language'), get_language())
        form = _extract_submission(payload)
        result = validate_form(
            get_sections(questionnaire_type), form['answers'], form['contact'],
            language, form['additional'], form['source']
        )

        if result.is_valid:
            return jsonify({'ok': True, 'errors': {}, 'codes': {}}), 200
        return jsonify(result.to_dict()), 422

    except Exception as e:
        current_app.logger.error(f'Validation error: {str(e)}')
        return jsonify({'ok': False, 'error': 'Internal validation error'}), 500


@api_bp.route('/submit/<questionnaire_type>', methods=['POST'])
@limiter.limit(RATE_LIMITS['submit'])
def api_submit(questionnaire_type: str):
    """
    Validate, format and deliver a questionnaire.

    The report text is sent first; an attachment, if any, is sent after it.
    A failed attachment does not undo the delivered text and is reported
    separately in `attachment_error`.

    Returns:
        JSON response with delivery status
    """
    questionnaire_type = _questionnaire_type_or_404(questionnaire_type)
    try:
        payload, attachment = _read_submit_payload()
        if payload is None:
            return _bad_request('No JSON payload provided')

        language = resolve_language(payload.get('language'), get_language())
        form = _extract_submission(payload)
        sections = get_sections(questionnaire_type)

        result = validate_form(
            sections, form['answers'], form['contact'], language,
            form['additional'], form['source']
        )
        if not result.is_valid:
            return jsonify(result.to_dict()), 422

        report = generate_report(
            questionnaire_type, sections, form['answers'], form['additional'],
            form['contact'], language, source=form['source'],
            timezone=current_app.config.get('REPORT_TIMEZONE'),
        )

        delivery = TelegramDelivery()
        success, error = delivery.send_text(report, language)
        if not success:
            current_app.logger.error(
                f'Questionnaire delivery failed from {get_client_ip()}: {error}'
            )
            return jsonify({'ok': False, 'error': error}), 502

        response = {'ok': True, 'attachment_sent': False}

        if attachment is not None and attachment.filename:
            caption = build_attachment_caption(questionnaire_type, form['contact'], language)
            sent, attachment_error = delivery.send_attachment(
                attachment.read(),
                secure_filename(attachment.filename) or 'attachment',
                attachment.mimetype,
                caption,
                language,
            )
            response['attachment_sent'] = sent
            if not sent:
                current_app.logger.error(f'Attachment delivery failed: {attachment_error}')
                response['attachment_error'] = attachment_error

        get_form_store().clear(questionnaire_type, language)
        current_app.logger.info(f'Questionnaire {questionnaire_type.value} delivered')
        return jsonify(response), 200

    except Exception as e:
        current_app.logger.error(f'Submit error: {str(e)}')
        return jsonify({'ok': False, 'error': 'Failed to send questionnaire'}), 500
