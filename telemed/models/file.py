from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from . import db, enum_values, iso


class RelatedKind(Enum):
    APPOINTMENT = "appointment"
    PRESCRIPTION = "prescription"
    MEDICAL_RECORD = "medical-record"
    MESSAGE = "message"


@dataclass(frozen=True)
class RelatedTo:
    """Lookup hint pointing an uploaded file at another entity.

    Not a foreign key and not an ownership relation: access to a file is
    decided by its owner alone.
    """
    kind: RelatedKind
    id: int

    @classmethod
    def parse(cls, kind, related_id):
        """Build a RelatedTo from raw request values.

        Returns None when neither value is given and raises ValueError when
        only one is given or either cannot be parsed.
        """
        if kind in (None, '') and related_id in (None, ''):
            return None
        if kind in (None, '') or related_id in (None, ''):
            raise ValueError('relatedToType and relatedToId must be given together')
        try:
            kind = RelatedKind(kind)
        except ValueError:
            allowed = ', '.join(enum_values(RelatedKind))
            raise ValueError(f'Unknown related type {kind!r}, expected one of: {allowed}')
        try:
            related_id = int(related_id)
        except (TypeError, ValueError):
            raise ValueError(f'Related id must be an integer, got {related_id!r}')
        return cls(kind=kind, id=related_id)

    def to_dict(self):
        return {'kind': self.kind.value, 'id': self.id}


class File(db.Model):
    __tablename__ = 'files'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(255), db.ForeignKey('users.id'), nullable=False, index=True)
    related_to_id = db.Column(db.Integer)
    related_to_type = db.Column(
        db.Enum(RelatedKind, values_callable=enum_values, native_enum=False, length=20)
    )
    # Name on disk and the name the client uploaded
    filename = db.Column(db.String(255), nullable=False, unique=True)
    original_name = db.Column(db.String(255), nullable=False)
    mime_type = db.Column(db.String(100), nullable=False)
    size = db.Column(db.Integer, nullable=False)
    path = db.Column(db.String(500), nullable=False)
    uploaded_at = db.Column(db.DateTime, default=datetime.now)

    __table_args__ = (
        db.Index('ix_files_related', 'related_to_type', 'related_to_id'),
    )

    def __repr__(self):
        return f'<File {self.filename}>'

    @property
    def related_to(self):
        if self.related_to_type is None or self.related_to_id is None:
            return None
        return RelatedTo(kind=self.related_to_type, id=self.related_to_id)

    @related_to.setter
    def related_to(self, value):
        if value is None:
            self.related_to_type = None
            self.related_to_id = None
        else:
            self.related_to_type = value.kind
            self.related_to_id = value.id

    def to_dict(self):
        related_to = self.related_to
        return {
            'id': self.id,
            'ownerId': self.owner_id,
            'relatedTo': related_to.to_dict() if related_to else None,
            'filename': self.filename,
            'originalName': self.original_name,
            'mimeType': self.mime_type,
            'size': self.size,
            'url': f'/uploads/{self.filename}',
            'uploadedAt': iso(self.uploaded_at)
        }
