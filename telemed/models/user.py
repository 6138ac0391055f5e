from . import db, enum_values, iso
from datetime import datetime
from flask_login import UserMixin
import enum


class Role(enum.Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"


class User(db.Model, UserMixin):
    __tablename__ = 'users'

    # Subject claim issued by the identity provider
    id = db.Column(db.String(255), primary_key=True)
    email = db.Column(db.String(255), unique=True, index=True)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    profile_image_url = db.Column(db.String(500))
    role = db.Column(
        db.Enum(Role, values_callable=enum_values, native_enum=False, length=20),
        nullable=False,
        default=Role.PATIENT
    )

    # Clinical profile
    date_of_birth = db.Column(db.Date)
    phone_number = db.Column(db.String(50))
    address = db.Column(db.Text)
    specialty = db.Column(db.String(100))
    blood_type = db.Column(db.String(10))
    allergies = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    def __repr__(self):
        return f'<User {self.id}>'

    def has_role(self, role):
        if isinstance(role, str):
            return self.role.value == role
        return self.role == role

    def to_dict(self):
        data = {
            'id': self.id,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'profileImageUrl': self.profile_image_url,
            'role': self.role.value,
            'dateOfBirth': iso(self.date_of_birth),
            'phoneNumber': self.phone_number,
            'address': self.address,
            'createdAt': iso(self.created_at),
            'updatedAt': iso(self.updated_at)
        }

        # Role specific attributes
        if self.role == Role.PATIENT:
            data['bloodType'] = self.blood_type
            data['allergies'] = self.allergies
        elif self.role == Role.DOCTOR:
            data['specialty'] = self.specialty

        return data
