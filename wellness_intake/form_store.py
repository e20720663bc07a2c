"""
Form State Store Module

Best-effort persistence of in-progress questionnaire answers.

A snapshot is stored per (questionnaire type, language) under the key
`health_questionnaire_<type>_<language>` as JSON:

    {formData, additionalData, contactData, sourceData, timestamp}

where timestamp is the capture time in epoch milliseconds. Snapshots
older than 24 hours are treated as absent. Storage failures are logged and
never raised: the store is a cache, not a system of record.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional
from dataclasses import dataclass, field

from wellness_intake import db
from wellness_intake.catalog import QuestionnaireType
from wellness_intake.models import FormSnapshot
from wellness_intake.utils import now_ms


logger = logging.getLogger(__name__)

SNAPSHOT_TTL_MS = 24 * 60 * 60 * 1000
STORAGE_KEY_PREFIX = 'health_questionnaire'


def storage_key(questionnaire_type: QuestionnaireType, language: str) -> str:
    """Build the storage key for a questionnaire type and language."""
    return f'{STORAGE_KEY_PREFIX}_{QuestionnaireType(questionnaire_type).value}_{language}'


def empty_contact() -> Dict[str, str]:
    return {'telegram': '', 'instagram': ''}


def empty_source() -> Dict[str, str]:
    return {'source': '', 'recommender': ''}


def normalize_contact(contact: Any) -> Dict[str, str]:
    """
    Bring stored contact data to the {telegram, instagram} shape.

    Older drafts stored a single {method, username} pair; the username is
    moved to whichever field the method names.
    """
    if isinstance(contact, dict) and 'method' in contact and 'username' in contact:
        method = contact.get('method')
        username = contact.get('username') or ''
        return {
            'telegram': username if method == 'telegram' else '',
            'instagram': username if method == 'instagram' else '',
        }

    if not isinstance(contact, dict) or 'telegram' not in contact:
        return empty_contact()

    return {
        'telegram': contact.get('telegram') or '',
        'instagram': contact.get('instagram') or '',
    }


@dataclass
class Snapshot:
    """A loaded, normalised questionnaire draft."""
    form_data: Dict[str, Any] = field(default_factory=dict)
    additional_data: Dict[str, str] = field(default_factory=dict)
    contact_data: Dict[str, str] = field(default_factory=empty_contact)
    source_data: Dict[str, str] = field(default_factory=empty_source)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'formData': self.form_data,
            'additionalData': self.additional_data,
            'contactData': self.contact_data,
            'sourceData': self.source_data,
        }


class MemoryStorage:
    """Dictionary-backed key/value storage."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str):
        self._items[key] = value

    def remove_item(self, key: str):
        self._items.pop(key, None)


class DatabaseStorage:
    """Key/value storage on the form_snapshots table, scoped to one browser."""

    def __init__(self, client_id: str):
        self.client_id = client_id

    def _find(self, key: str):
        return FormSnapshot.query.filter_by(client_id=self.client_id, storage_key=key).first()

    def get_item(self, key: str) -> Optional[str]:
        row = self._find(key)
        return row.value_json if row else None

    def set_item(self, key: str, value: str):
        try:
            row = self._find(key)
            if row:
                row.touch(value)
            else:
                db.session.add(FormSnapshot(client_id=self.client_id, storage_key=key, value_json=value))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def remove_item(self, key: str):
        try:
            row = self._find(key)
            if row:
                db.session.delete(row)
                db.session.commit()
        except Exception:
            db.session.rollback()
            raise


class FormStateStore:
    """Save, load and clear questionnaire drafts on a key/value storage."""

    def __init__(self, storage, clock: Optional[Callable[[], int]] = None):
        self.storage = storage
        self.clock = clock or now_ms

    def save(self, questionnaire_type: QuestionnaireType, language: str,
             answers: Dict[str, Any], additional: Dict[str, str],
             contact: Dict[str, str], source: Optional[Dict[str, str]] = None):
        """Write a snapshot stamped with the current time. Never raises."""
        try:
            data = {
                'formData': answers,
                'additionalData': additional,
                'contactData': contact,
                'sourceData': source or empty_source(),
                'timestamp': self.clock(),
            }
            self.storage.set_item(storage_key(questionnaire_type, language), json.dumps(data))
        except Exception as e:
            logger.error(f'Error saving form data: {e}')

    def load(self, questionnaire_type: QuestionnaireType, language: str) -> Optional[Snapshot]:
        """
        Read a snapshot.

        Returns:
            The normalised Snapshot, or None when it is missing, unreadable
            or older than 24 hours
        """
        try:
            stored = self.storage.get_item(storage_key(questionnaire_type, language))
            if not stored:
                return None

            data = json.loads(stored)
            if not isinstance(data, dict):
                return None

            timestamp = data.get('timestamp')
            if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
                return None
            if self.clock() - timestamp >= SNAPSHOT_TTL_MS:
                return None

            return Snapshot(
                form_data=data.get('formData') or {},
                additional_data=data.get('additionalData') or {},
                contact_data=normalize_contact(data.get('contactData')),
                source_data=data.get('sourceData') or empty_source(),
            )
        except Exception as e:
            logger.error(f'Error loading form data: {e}')
            return None

    def clear(self, questionnaire_type: QuestionnaireType, language: str):
        """Delete a snapshot. Never raises."""
        try:
            self.storage.remove_item(storage_key(questionnaire_type, language))
        except Exception as e:
            logger.error(f'Error clearing form data: {e}')
