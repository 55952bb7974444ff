from datetime import datetime

from denta_crm.extensions import db


class IgnoredDuplicatePair(db.Model):
    """Two client identities a user marked as "not a duplicate"."""
    __tablename__ = 'ignored_duplicate_pairs'

    id = db.Column(db.Integer, primary_key=True)
    # ":::".join(sorted([identity_key_a, identity_key_b]))
    pair_key = db.Column(db.String(600), unique=True, nullable=False)
    identity_key_a = db.Column(db.String(300), nullable=False, index=True)
    identity_key_b = db.Column(db.String(300), nullable=False, index=True)
    created_by_email = db.Column(db.String(120))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<IgnoredDuplicatePair {self.pair_key}>"
