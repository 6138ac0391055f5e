#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Seed demo data

Usage:
python init_mock_data.py

Creates, through the record store:
1. Doctors and patients
2. Doctor/patient assignments
3. Appointments, prescriptions and medical records

and prints an identity token per user that can be posted to
/api/auth/callback to log in as that user.
"""

import os
import random
from dotenv import load_dotenv
from datetime import date, time, timedelta

# Load environment variables
load_dotenv()

from telemed import create_app
app = create_app(os.getenv('FLASK_ENV', 'development'))

from telemed.models import Role, AppointmentType, RecordType
from telemed.storage import storage
from telemed.utils.jwt_utils import encode_identity_token

doctors_data = [
    {
        'id': 'demo-doctor-1',
        'email': 'sarah.chen@example.com',
        'first_name': 'Sarah',
        'last_name': 'Chen',
        'role': Role.DOCTOR,
        'specialty': 'Cardiology',
        'phone_number': '555-0101'
    },
    {
        'id': 'demo-doctor-2',
        'email': 'david.okafor@example.com',
        'first_name': 'David',
        'last_name': 'Okafor',
        'role': Role.DOCTOR,
        'specialty': 'Dermatology',
        'phone_number': '555-0102'
    },
    {
        'id': 'demo-doctor-3',
        'email': 'maria.garcia@example.com',
        'first_name': 'Maria',
        'last_name': 'Garcia',
        'role': Role.DOCTOR,
        'specialty': 'General Practice',
        'phone_number': '555-0103'
    }
]

patients_data = [
    {
        'id': 'demo-patient-1',
        'email': 'james.wilson@example.com',
        'first_name': 'James',
        'last_name': 'Wilson',
        'role': Role.PATIENT,
        'date_of_birth': date(1985, 3, 12),
        'blood_type': 'A+',
        'allergies': 'Penicillin'
    },
    {
        'id': 'demo-patient-2',
        'email': 'emma.johnson@example.com',
        'first_name': 'Emma',
        'last_name': 'Johnson',
        'role': Role.PATIENT,
        'date_of_birth': date(1992, 7, 30),
        'blood_type': 'O-',
        'allergies': None
    },
    {
        'id': 'demo-patient-3',
        'email': 'liam.brown@example.com',
        'first_name': 'Liam',
        'last_name': 'Brown',
        'role': Role.PATIENT,
        'date_of_birth': date(1978, 11, 2),
        'blood_type': 'B+',
        'allergies': 'Peanuts, latex'
    },
    {
        'id': 'demo-patient-4',
        'email': 'olivia.davis@example.com',
        'first_name': 'Olivia',
        'last_name': 'Davis',
        'role': Role.PATIENT,
        'date_of_birth': date(2001, 1, 18),
        'blood_type': 'AB+',
        'allergies': None
    }
]

medications = [
    ('Lisinopril', '10mg', 'Once daily', '90 days'),
    ('Amoxicillin', '500mg', 'Three times daily', '7 days'),
    ('Metformin', '850mg', 'Twice daily', '30 days'),
    ('Hydrocortisone cream', 'Thin layer', 'Twice daily', '14 days')
]

reasons = ['Annual check-up', 'Follow-up consultation', 'Skin rash', 'Blood pressure review', 'Lab results']


def create_users():
    """Insert or refresh the demo users"""
    print("Creating users...")
    for data in doctors_data + patients_data:
        storage.upsert_user(data)
    print(f"Upserted {len(doctors_data) + len(patients_data)} users")


def create_assignments():
    """Every patient gets one or two doctors"""
    print("Assigning patients to doctors...")
    for patient in patients_data:
        for doctor in random.sample(doctors_data, random.randint(1, 2)):
            storage.assign_patient_to_doctor(doctor['id'], patient['id'])


def create_clinical_data():
    """Appointments, prescriptions and records for each assignment"""
    print("Creating appointments, prescriptions and medical records...")
    today = date.today()
    created = 0

    for patient in patients_data:
        doctors = storage.get_patient_doctors(patient['id'])
        if storage.get_appointments_by_patient(patient['id']):
            print(f"Patient {patient['id']} already has appointments, skipping...")
            continue

        for doctor in doctors:
            # One past and one upcoming appointment per pair
            for offset in (-random.randint(5, 30), random.randint(1, 21)):
                storage.create_appointment({
                    'patient_id': patient['id'],
                    'doctor_id': doctor.id,
                    'appointment_date': today + timedelta(days=offset),
                    'appointment_time': time(random.randint(8, 16), random.choice((0, 30))),
                    'type': random.choice(list(AppointmentType)),
                    'reason': random.choice(reasons)
                })
                created += 1

            name, dosage, frequency, duration = random.choice(medications)
            storage.create_prescription({
                'patient_id': patient['id'],
                'doctor_id': doctor.id,
                'medication_name': name,
                'dosage': dosage,
                'frequency': frequency,
                'duration': duration,
                'instructions': 'Take with food',
                'expires_at': today + timedelta(days=90)
            })

            storage.create_medical_record({
                'patient_id': patient['id'],
                'doctor_id': doctor.id,
                'record_type': random.choice(list(RecordType)),
                'title': f'{doctor.specialty} consultation',
                'description': f'Seen by Dr. {doctor.last_name}. No acute findings.',
                'date': today - timedelta(days=random.randint(1, 60))
            })

    print(f"Created {created} appointments")


def print_tokens():
    """Identity tokens for logging in as the demo users"""
    print("\nIdentity tokens (POST {\"token\": ...} to /api/auth/callback):")
    for data in doctors_data + patients_data:
        token = encode_identity_token({'sub': data['id']}, expires_in=timedelta(days=1))
        print(f"  {data['id']}: {token}")


def main():
    print("Seeding demo data...")

    with app.app_context():
        create_users()
        create_assignments()
        create_clinical_data()
        print_tokens()

    print("Done!")


if __name__ == "__main__":
    main()
