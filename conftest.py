# conftest.py
"""
Shared pytest fixtures.

The app runs against an in-memory MockFirestore and a MagicMock Storage
bucket; mail is captured on `app.services['email'].sent_messages`.
"""

import io
import itertools
import json
from unittest.mock import MagicMock

import pytest
from mockfirestore import MockFirestore

from app import create_app
from app.models.user import UserRole

TEST_BUCKET = 'lostfound-test.appspot.com'


@pytest.fixture
def db():
    return MockFirestore()


@pytest.fixture
def bucket():
    bucket = MagicMock()
    bucket.name = TEST_BUCKET

    def make_blob(blob_name):
        blob = MagicMock()
        blob.name = blob_name
        blob.public_url = f"https://storage.googleapis.com/{TEST_BUCKET}/{blob_name}"
        return blob

    bucket.blob.side_effect = make_blob
    return bucket


@pytest.fixture
def app(db, bucket):
    # No app context is held open here: each test request must get its own `g`.
    return create_app('testing', db=db, bucket=bucket)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sent_emails(app):
    return app.services['email'].sent_messages


@pytest.fixture
def make_user(app):
    """Registers an account and returns (user, auth headers)."""
    counter = itertools.count(1)

    def _make(role=UserRole.USER, name="Test User", email=None, password="Password1", phone="15551234567"):
        email = email or f"user{next(counter)}@example.com"
        with app.app_context():
            user, token = app.services['auth'].register(
                {'name': name, 'email': email, 'password': password, 'phone': phone},
                role=role
            )
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def owner(make_user):
    return make_user(name="Olivia Owner", email="owner@example.com")


@pytest.fixture
def other_user(make_user):
    return make_user(name="Sam Stranger", email="stranger@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, name="Ada Admin", email="admin@example.com")


def photo(name="dog.jpg", content=b"\xff\xd8\xff fake jpeg bytes", mimetype="image/jpeg"):
    return (io.BytesIO(content), name, mimetype)


def pet_form(**overrides):
    """Multipart fields of a valid lost-dog post, nested values as JSON strings."""
    form = {
        'name': 'Buddy',
        'type': 'dog',
        'breed': 'Golden Retriever',
        'color': 'Golden',
        'gender': 'male',
        'status': 'missing',
        'lastSeenDate': '2024-01-15T10:30:00Z',
        'lastSeenLocation': json.dumps({
            'address': '123 Main St',
            'city': 'New York',
            'coordinates': [-74.0060, 40.7128]
        }),
    }
    form.update(overrides)
    return form


@pytest.fixture
def create_pet(client):
    """POSTs a pet post as the given headers and returns the response body's pet."""

    def _create(headers, photos=1, **overrides):
        data = pet_form(**overrides)
        data['photos'] = [photo(f"dog{i}.jpg") for i in range(photos)]
        response = client.post('/api/pets', data=data, headers=headers, content_type='multipart/form-data')
        assert response.status_code == 201, response.get_json()
        return response.get_json()['data']['pet']

    return _create


@pytest.fixture
def approve(client, admin):
    def _approve(pet_id):
        response = client.patch(f'/api/pets/{pet_id}/approve', headers=admin[1])
        assert response.status_code == 200, response.get_json()
        return response.get_json()['data']['pet']

    return _approve
