from datetime import datetime
from . import db, iso


class Message(db.Model):
    __tablename__ = 'messages'

    id = db.Column(db.Integer, primary_key=True)
    sender_id = db.Column(db.String(255), db.ForeignKey('users.id'), nullable=False, index=True)
    receiver_id = db.Column(db.String(255), db.ForeignKey('users.id'), nullable=False, index=True)
    # Attachments travel inside the content as a textual marker
    content = db.Column(db.Text, nullable=False)
    read = db.Column(db.Boolean, nullable=False, default=False)
    sent_at = db.Column(db.DateTime, default=datetime.now, index=True)

    def __repr__(self):
        return f'<Message {self.id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'senderId': self.sender_id,
            'receiverId': self.receiver_id,
            'content': self.content,
            'read': self.read,
            'sentAt': iso(self.sent_at)
        }
