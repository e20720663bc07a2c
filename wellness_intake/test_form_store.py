"""
Tests for the form state store and draft retention.
"""

import json
from datetime import datetime, timedelta

import pytest

from wellness_intake import db
from wellness_intake.catalog import QuestionnaireType
from wellness_intake.form_store import (
    SNAPSHOT_TTL_MS, DatabaseStorage, FormStateStore, MemoryStorage,
    normalize_contact, storage_key,
)
from wellness_intake.models import FormSnapshot
from wellness_intake.retention_policy import calculate_retention_date, purge_stale_snapshots


NOW = 1_700_000_000_000


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now


class BrokenStorage:
    def get_item(self, key):
        raise RuntimeError('storage unavailable')

    def set_item(self, key, value):
        raise RuntimeError('quota exceeded')

    def remove_item(self, key):
        raise RuntimeError('storage unavailable')


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return FormStateStore(MemoryStorage(), clock=clock)


def save_sample(store, questionnaire_type=QuestionnaireType.WOMAN, language='ru'):
    store.save(
        questionnaire_type, language,
        {'name': 'Анна', 'digestion': ['bloating']},
        {'digestion_additional': 'после еды'},
        {'telegram': 'anna_k', 'instagram': ''},
        {'source': 'recommendation', 'recommender': 'Ольга'},
    )


class TestStorageKey:
    def test_format(self):
        assert storage_key(QuestionnaireType.INFANT, 'en') == 'health_questionnaire_infant_en'

    def test_accepts_plain_string(self):
        assert storage_key('man', 'ru') == 'health_questionnaire_man_ru'


class TestFormStateStore:
    def test_round_trip(self, store):
        save_sample(store)
        snapshot = store.load(QuestionnaireType.WOMAN, 'ru')
        assert snapshot.form_data == {'name': 'Анна', 'digestion': ['bloating']}
        assert snapshot.additional_data == {'digestion_additional': 'после еды'}
        assert snapshot.contact_data == {'telegram': 'anna_k', 'instagram': ''}
        assert snapshot.source_data == {'source': 'recommendation', 'recommender': 'Ольга'}

    def test_stored_json_shape(self, store):
        save_sample(store)
        raw = json.loads(store.storage.get_item('health_questionnaire_woman_ru'))
        assert set(raw) == {'formData', 'additionalData', 'contactData', 'sourceData', 'timestamp'}
        assert raw['timestamp'] == NOW

    def test_keys_separate_type_and_language(self, store):
        save_sample(store)
        assert store.load(QuestionnaireType.WOMAN, 'en') is None
        assert store.load(QuestionnaireType.MAN, 'ru') is None

    def test_missing_source_defaults(self, store):
        store.save(QuestionnaireType.MAN, 'ru', {}, {}, {'telegram': 'ivan_p', 'instagram': ''})
        snapshot = store.load(QuestionnaireType.MAN, 'ru')
        assert snapshot.source_data == {'source': '', 'recommender': ''}

    def test_fresh_just_before_expiry(self, store, clock):
        save_sample(store)
        clock.now = NOW + SNAPSHOT_TTL_MS - 1
        assert store.load(QuestionnaireType.WOMAN, 'ru') is not None

    def test_expired_at_ttl(self, store, clock):
        save_sample(store)
        clock.now = NOW + SNAPSHOT_TTL_MS
        assert store.load(QuestionnaireType.WOMAN, 'ru') is None

    def test_clear(self, store):
        save_sample(store)
        store.clear(QuestionnaireType.WOMAN, 'ru')
        assert store.load(QuestionnaireType.WOMAN, 'ru') is None

    @pytest.mark.parametrize('raw', [
        'not json',
        '[1, 2, 3]',
        '{"formData": {}}',
        '{"formData": {}, "timestamp": "yesterday"}',
        '{"formData": {}, "timestamp": true}',
    ])
    def test_unreadable_snapshot(self, store, raw):
        store.storage.set_item('health_questionnaire_man_ru', raw)
        assert store.load(QuestionnaireType.MAN, 'ru') is None

    def test_legacy_contact_migrated(self, store):
        store.storage.set_item('health_questionnaire_man_ru', json.dumps({
            'formData': {'name': 'Иван'},
            'additionalData': {},
            'contactData': {'method': 'instagram', 'username': 'ivan.p'},
            'timestamp': NOW,
        }))
        snapshot = store.load(QuestionnaireType.MAN, 'ru')
        assert snapshot.contact_data == {'telegram': '', 'instagram': 'ivan.p'}

    def test_to_dict(self, store):
        save_sample(store)
        data = store.load(QuestionnaireType.WOMAN, 'ru').to_dict()
        assert set(data) == {'formData', 'additionalData', 'contactData', 'sourceData'}

    def test_storage_failures_swallowed(self, clock):
        store = FormStateStore(BrokenStorage(), clock=clock)
        save_sample(store)
        assert store.load(QuestionnaireType.WOMAN, 'ru') is None
        store.clear(QuestionnaireType.WOMAN, 'ru')


class TestNormalizeContact:
    def test_legacy_telegram(self):
        assert normalize_contact({'method': 'telegram', 'username': 'anna_k'}) == {
            'telegram': 'anna_k', 'instagram': ''
        }

    def test_current_shape(self):
        assert normalize_contact({'telegram': None, 'instagram': 'anna.k'}) == {
            'telegram': '', 'instagram': 'anna.k'
        }

    @pytest.mark.parametrize('value', [None, 'anna', {}, {'instagram': 'anna.k'}])
    def test_unrecognised_shapes(self, value):
        assert normalize_contact(value) == {'telegram': '', 'instagram': ''}


class TestDatabaseStorage:
    def test_round_trip(self, app, clock):
        store = FormStateStore(DatabaseStorage('browser-1'), clock=clock)
        save_sample(store)
        assert store.load(QuestionnaireType.WOMAN, 'ru').contact_data['telegram'] == 'anna_k'
        assert FormSnapshot.query.count() == 1

    def test_save_overwrites(self, app, clock):
        store = FormStateStore(DatabaseStorage('browser-1'), clock=clock)
        save_sample(store)
        store.save(QuestionnaireType.WOMAN, 'ru', {'name': 'Мария'}, {}, {'telegram': '', 'instagram': 'maria'})
        assert FormSnapshot.query.count() == 1
        assert store.load(QuestionnaireType.WOMAN, 'ru').form_data == {'name': 'Мария'}

    def test_scoped_per_client(self, app, clock):
        save_sample(FormStateStore(DatabaseStorage('browser-1'), clock=clock))
        other = FormStateStore(DatabaseStorage('browser-2'), clock=clock)
        assert other.load(QuestionnaireType.WOMAN, 'ru') is None

    def test_clear(self, app, clock):
        store = FormStateStore(DatabaseStorage('browser-1'), clock=clock)
        save_sample(store)
        store.clear(QuestionnaireType.WOMAN, 'ru')
        assert FormSnapshot.query.count() == 0


class TestRetentionPolicy:
    def test_retention_date(self):
        now = datetime(2024, 3, 5, 12, 0)
        assert calculate_retention_date(now) == datetime(2024, 3, 4, 12, 0)

    def _add(self, client_id, updated_at):
        db.session.add(FormSnapshot(
            client_id=client_id, storage_key='health_questionnaire_man_ru',
            value_json='{}', updated_at=updated_at,
        ))
        db.session.commit()

    def test_purge_stale(self, app):
        now = datetime(2024, 3, 5, 12, 0)
        self._add('old', now - timedelta(hours=25))
        self._add('fresh', now - timedelta(hours=1))

        assert purge_stale_snapshots(now, dry_run=True) == 1
        assert FormSnapshot.query.count() == 2

        assert purge_stale_snapshots(now) == 1
        assert [row.client_id for row in FormSnapshot.query.all()] == ['fresh']

    def test_nothing_to_purge(self, app):
        assert purge_stale_snapshots() == 0
