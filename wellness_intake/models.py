"""
Database models for the questionnaire site.

Only in-progress drafts are stored. Submitted questionnaires go to
Telegram and are never written to the database.
"""

from datetime import datetime
from wellness_intake import db


class FormSnapshot(db.Model):
    """
    A persisted questionnaire draft for one browser and one storage key.

    The storage key is `health_questionnaire_<type>_<language>`; the value
    is the JSON snapshot produced by the form state store.
    """
    __tablename__ = 'form_snapshots'
    __table_args__ = (
        db.UniqueConstraint('client_id', 'storage_key', name='uq_form_snapshot_client_key'),
    )

    id = db.Column(db.Integer, primary_key=True)

    # Anonymous browser id from the Flask session
    client_id = db.Column(db.String(64), nullable=False, index=True)
    storage_key = db.Column(db.String(100), nullable=False)

    value_json = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f'<FormSnapshot {self.client_id}/{self.storage_key}>'

    def touch(self, value_json: str):
        """Replace the stored value and bump the update time."""
        self.value_json = value_json
        self.updated_at = datetime.utcnow()
