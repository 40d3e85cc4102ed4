# app/api/pets/test_pet_routes.py
import json
from unittest.mock import MagicMock

from conftest import photo, pet_form, TEST_BUCKET


def pet_ids(response):
    return [pet['id'] for pet in response.get_json()['data']['pets']]


def owner_notifications(app, user_id, n_type=None):
    items = app.services['notification_repository'].find(recipient_id=user_id)
    if n_type:
        items = [n for n in items if n.type.value == n_type]
    return items


def blob_store(bucket, failing_upload=None):
    """One mock blob per name, so uploads and later deletes land on the same object.
    The `failing_upload`-th new blob (1-based) raises on upload."""
    blobs = {}

    def make_blob(blob_name):
        if blob_name not in blobs:
            blob = MagicMock()
            blob.name = blob_name
            blob.public_url = f"https://storage.googleapis.com/{TEST_BUCKET}/{blob_name}"
            if failing_upload == len(blobs) + 1:
                blob.upload_from_file.side_effect = RuntimeError("bucket unavailable")
            blobs[blob_name] = blob
        return blobs[blob_name]

    bucket.blob.side_effect = make_blob
    return blobs


# --- create ---

def test_create_pet_requires_photo(client, owner):
    response = client.post('/api/pets', data=pet_form(), headers=owner[1], content_type='multipart/form-data')
    assert response.status_code == 400
    assert response.get_json()['message'] == 'At least one photo is required'


def test_create_pet_requires_token(client):
    data = dict(pet_form(), photos=[photo()])
    response = client.post('/api/pets', data=data, content_type='multipart/form-data')
    assert response.status_code == 401


def test_create_pet_uploads_photos_and_waits_for_approval(create_pet, owner, bucket):
    pet = create_pet(owner[1], photos=2)
    assert pet['isApproved'] is False
    assert pet['ownerId'] == owner[0].user_id
    assert pet['owner']['name'] == 'Olivia Owner'
    assert len(pet['photos']) == 2
    assert all(url.startswith(f"https://storage.googleapis.com/{bucket.name}/pets/{owner[0].user_id}/")
               for url in pet['photos'])
    assert pet['lastSeenLocation']['coordinates'] == {'type': 'Point', 'coordinates': [-74.0060, 40.7128]}
    assert pet['fullLocation'] == '123 Main St, New York'
    assert pet['ageDisplay'] == 'Unknown'
    assert pet['collar'] == {'hasCollar': False}


def test_admin_created_pet_is_auto_approved(create_pet, admin):
    pet = create_pet(admin[1])
    assert pet['isApproved'] is True
    assert pet['approvedBy'] == admin[0].user_id


def test_create_pet_rejects_non_image(client, owner):
    data = dict(pet_form(), photos=[photo('notes.txt', b'hello', 'text/plain')])
    response = client.post('/api/pets', data=data, headers=owner[1], content_type='multipart/form-data')
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Only image files are allowed'


def test_create_pet_failed_upload_removes_stored_photos(client, app, owner, bucket):
    blobs = blob_store(bucket, failing_upload=2)
    data = dict(pet_form(), photos=[photo('one.jpg'), photo('two.jpg')])

    response = client.post('/api/pets', data=data, headers=owner[1], content_type='multipart/form-data')
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Failed to upload photo'

    first, second = blobs.values()
    first.delete.assert_called_once()
    second.delete.assert_not_called()
    assert app.services['pet_repository'].by_owner(owner[0].user_id) == []


def test_create_pet_without_coordinates_stores_null(create_pet, owner):
    pet = create_pet(owner[1], lastSeenLocation=json.dumps({'address': '5 Elm St'}))
    assert pet['lastSeenLocation']['coordinates'] is None


def test_create_pet_rejects_malformed_coordinates(client, owner):
    data = pet_form(lastSeenLocation=json.dumps({'address': '5 Elm St', 'coordinates': [200, 95]}))
    data['photos'] = [photo()]
    response = client.post('/api/pets', data=data, headers=owner[1], content_type='multipart/form-data')
    assert response.status_code == 400


def test_create_pet_rejects_future_last_seen_date(client, owner):
    data = dict(pet_form(lastSeenDate='2999-01-01T00:00:00Z'), photos=[photo()])
    response = client.post('/api/pets', data=data, headers=owner[1], content_type='multipart/form-data')
    assert response.status_code == 400
    assert response.get_json()['errors'][0]['field'] == 'lastSeenDate'


# --- listing and visibility ---

def test_scenario_listing_follows_approval(client, make_user, admin):
    _u1, headers = make_user(name="Uma One", email="u1@example.com")
    login = client.post('/api/auth/login', json={'email': 'u1@example.com', 'password': 'Password1'})
    headers = {'Authorization': f"Bearer {login.get_json()['data']['token']}"}

    data = dict(pet_form(status='missing'), photos=[photo()])
    created = client.post('/api/pets', data=data, headers=headers, content_type='multipart/form-data')
    assert created.status_code == 201
    pet_id = created.get_json()['data']['pet']['id']

    assert pet_id not in pet_ids(client.get('/api/pets'))

    assert client.patch(f'/api/pets/{pet_id}/approve', headers=admin[1]).status_code == 200
    assert pet_id in pet_ids(client.get('/api/pets'))


def test_admin_list_includes_unapproved(client, create_pet, owner, admin):
    pet = create_pet(owner[1])
    assert pet['id'] in pet_ids(client.get('/api/pets', headers=admin[1]))


def test_list_filters_and_pagination(client, create_pet, owner, approve):
    for name, pet_type in [('Rex', 'dog'), ('Tom', 'cat'), ('Fido', 'dog')]:
        approve(create_pet(owner[1], name=name, type=pet_type)['id'])

    response = client.get('/api/pets?type=dog&limit=1')
    body = response.get_json()['data']
    assert len(body['pets']) == 1
    assert body['pagination'] == {'page': 1, 'limit': 1, 'total': 2, 'pages': 2}

    by_breed = client.get('/api/pets?breed=golden')
    assert len(by_breed.get_json()['data']['pets']) == 3


def test_list_rejects_bad_query(client):
    assert client.get('/api/pets?type=dragon').status_code == 400
    assert client.get('/api/pets?limit=500').status_code == 400


def test_unapproved_detail_only_for_owner_and_admin(client, create_pet, owner, other_user, admin):
    pet_id = create_pet(owner[1])['id']
    assert client.get(f'/api/pets/{pet_id}').status_code == 404
    assert client.get(f'/api/pets/{pet_id}', headers=other_user[1]).status_code == 404
    assert client.get(f'/api/pets/{pet_id}', headers=owner[1]).status_code == 200
    assert client.get(f'/api/pets/{pet_id}', headers=admin[1]).status_code == 200


def test_detail_counts_views(client, create_pet, owner, approve):
    pet_id = create_pet(owner[1])['id']
    approve(pet_id)
    client.get(f'/api/pets/{pet_id}')
    response = client.get(f'/api/pets/{pet_id}')
    assert response.get_json()['data']['pet']['views'] == 2


def test_detail_of_missing_pet(client):
    assert client.get('/api/pets/does-not-exist').status_code == 404


def test_nearby_search(client, create_pet, owner, approve):
    near = create_pet(owner[1], name='Near')['id']
    far = create_pet(owner[1], name='Far', lastSeenLocation=json.dumps({
        'address': '1 Atlantic St', 'city': 'Stamford', 'coordinates': [-73.5387, 41.0534]
    }))['id']
    nowhere = create_pet(owner[1], name='Nowhere', lastSeenLocation=json.dumps({'address': 'Unknown'}))['id']
    for pet_id in (near, far, nowhere):
        approve(pet_id)

    response = client.get('/api/pets/search/nearby?latitude=40.7130&longitude=-74.0050&radius=5')
    assert pet_ids(response) == [near]

    wide = client.get('/api/pets/search/nearby?latitude=40.7130&longitude=-74.0050&radius=60')
    assert pet_ids(wide) == [near, far]
    assert wide.get_json()['data']['pagination']['total'] == 2


def test_nearby_requires_coordinates(client):
    response = client.get('/api/pets/search/nearby?radius=5')
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Latitude and longitude are required'


def test_my_pets(client, create_pet, owner, other_user):
    create_pet(owner[1])
    create_pet(other_user[1])
    response = client.get('/api/pets/my-pets', headers=owner[1])
    pets = response.get_json()['data']['pets']
    assert len(pets) == 1
    assert pets[0]['ownerId'] == owner[0].user_id


# --- update / delete / ownership ---

def test_owner_edit_resets_approval(client, create_pet, owner, approve):
    pet_id = create_pet(owner[1])['id']
    approve(pet_id)

    response = client.put(f'/api/pets/{pet_id}', headers=owner[1], json={'name': 'Buddy II', 'age': 3})
    assert response.status_code == 200
    pet = response.get_json()['data']['pet']
    assert pet['name'] == 'Buddy II'
    assert pet['ageDisplay'] == '3 years'
    assert pet['isApproved'] is False
    assert pet['approvedBy'] is None


def test_update_keeps_subset_of_photos_and_purges_the_rest(client, create_pet, owner, bucket):
    pet = create_pet(owner[1], photos=2)
    keep, drop = pet['photos']

    response = client.put(f"/api/pets/{pet['id']}", headers=owner[1], json={'photos': [keep]})
    assert response.status_code == 200
    assert response.get_json()['data']['pet']['photos'] == [keep]

    dropped_blob = drop.split(f"{bucket.name}/", 1)[1]
    assert dropped_blob in [call.args[0] for call in bucket.blob.call_args_list]


def test_update_cannot_remove_every_photo(client, create_pet, owner):
    pet = create_pet(owner[1])
    response = client.put(f"/api/pets/{pet['id']}", headers=owner[1], json={'photos': []})
    assert response.status_code == 400


def test_update_multipart_appends_uploads(client, create_pet, owner):
    pet = create_pet(owner[1])
    data = {'photos': [photo('extra.png', mimetype='image/png')], 'color': 'Brown'}
    response = client.put(f"/api/pets/{pet['id']}", headers=owner[1], data=data, content_type='multipart/form-data')
    assert response.status_code == 200
    updated = response.get_json()['data']['pet']
    assert len(updated['photos']) == 2
    assert updated['photos'][0] == pet['photos'][0]
    assert updated['color'] == 'Brown'


def test_update_failed_write_removes_new_uploads(client, app, create_pet, owner, bucket, monkeypatch):
    blobs = blob_store(bucket)
    pet = create_pet(owner[1])
    original_blob = next(iter(blobs.values()))

    def failing_update(doc_id, changes):
        raise RuntimeError("firestore unavailable")

    monkeypatch.setattr(app.services['pet_repository'], 'update', failing_update)
    data = {'photos': [photo('extra.png', mimetype='image/png')]}
    response = client.put(f"/api/pets/{pet['id']}", headers=owner[1], data=data, content_type='multipart/form-data')
    assert response.status_code == 500
    assert response.get_json()['success'] is False

    new_blob = [blob for blob in blobs.values() if blob is not original_blob][0]
    new_blob.delete.assert_called_once()
    original_blob.delete.assert_not_called()


def test_ownership_gate(client, create_pet, owner, other_user, admin):
    pet_id = create_pet(owner[1])['id']

    forbidden = client.put(f'/api/pets/{pet_id}', headers=other_user[1], json={'name': 'Mine'})
    assert forbidden.status_code == 403
    assert forbidden.get_json()['message'] == 'Not authorized to access this pet'

    missing = client.put('/api/pets/nope', headers=owner[1], json={'name': 'Mine'})
    assert missing.status_code == 404
    assert missing.get_json()['message'] == 'Pet not found'

    assert client.put(f'/api/pets/{pet_id}', headers=admin[1], json={'breed': 'Labrador'}).status_code == 200


def test_admin_edit_notifies_owner(client, app, create_pet, owner, admin, sent_emails):
    pet_id = create_pet(owner[1])['id']
    client.put(f'/api/pets/{pet_id}', headers=admin[1], json={'breed': 'Labrador'})
    edited = owner_notifications(app, owner[0].user_id, 'post_edited')
    assert len(edited) == 1
    assert edited[0].is_email_sent is True
    assert sent_emails[-1]['To'] == owner[0].email


def test_delete_pet_purges_photos(client, app, create_pet, owner, bucket):
    pet = create_pet(owner[1])
    response = client.delete(f"/api/pets/{pet['id']}", headers=owner[1])
    assert response.status_code == 200
    assert app.services['pet_repository'].get(pet['id']) is None
    assert bucket.blob.call_count == 2


def test_delete_by_stranger_is_forbidden(client, create_pet, owner, other_user):
    pet = create_pet(owner[1])
    assert client.delete(f"/api/pets/{pet['id']}", headers=other_user[1]).status_code == 403


def test_reunite_is_idempotent(client, create_pet, owner):
    pet_id = create_pet(owner[1])['id']
    first = client.patch(f'/api/pets/{pet_id}/reunite', headers=owner[1])
    second = client.patch(f'/api/pets/{pet_id}/reunite', headers=owner[1])
    assert first.status_code == second.status_code == 200
    assert second.get_json()['data']['pet']['status'] == 'reunited'


# --- approval ---

def test_approve_requires_admin(client, create_pet, owner):
    pet_id = create_pet(owner[1])['id']
    response = client.patch(f'/api/pets/{pet_id}/approve', headers=owner[1])
    assert response.status_code == 403


def test_approve_notifies_owner(app, create_pet, owner, approve, sent_emails):
    pet_id = create_pet(owner[1])['id']
    pet = approve(pet_id)
    assert pet['isApproved'] is True
    approved = owner_notifications(app, owner[0].user_id, 'post_approved')
    assert len(approved) == 1
    assert approved[0].related_pet_id == pet_id
    assert sent_emails[-1]['Subject'].startswith('Your Pet Post Has Been Approved')


# --- contact ---

CONTACT = {
    'name': 'Helpful Neighbor',
    'email': 'neighbor@example.com',
    'phone': '15559876543',
    'message': 'I think I saw your dog near the park.'
}


def test_scenario_contact_owner_anonymously(client, app, create_pet, owner, approve, sent_emails):
    pet_id = create_pet(owner[1])['id']
    approve(pet_id)
    before = len(owner_notifications(app, owner[0].user_id, 'contact_request'))

    response = client.post(f'/api/pets/{pet_id}/contact', json=CONTACT)
    assert response.status_code == 200

    assert app.services['pet_repository'].get(pet_id).contact_count == 1
    contact_requests = owner_notifications(app, owner[0].user_id, 'contact_request')
    assert len(contact_requests) == before + 1
    assert contact_requests[-1].metadata['contactInfo']['email'] == 'neighbor@example.com'
    assert sent_emails[-1]['Subject'].startswith('Contact Request for Your Pet')


def test_contact_unapproved_pet_is_forbidden(client, create_pet, owner):
    pet_id = create_pet(owner[1])['id']
    response = client.post(f'/api/pets/{pet_id}/contact', json=CONTACT)
    assert response.status_code == 403


def test_contact_validates_body(client, create_pet, owner, approve):
    pet_id = create_pet(owner[1])['id']
    approve(pet_id)
    response = client.post(f'/api/pets/{pet_id}/contact', json=dict(CONTACT, email='not-an-email'))
    assert response.status_code == 400


class SmtpDown:
    def __init__(self, *args, **kwargs):
        raise OSError("relay down")


def test_contact_mail_failure_is_a_server_error(client, app, create_pet, owner, approve, monkeypatch):
    pet_id = create_pet(owner[1])['id']
    approve(pet_id)
    monkeypatch.setattr(app.services['email'], 'suppress_send', False)
    monkeypatch.setattr('smtplib.SMTP', SmtpDown)

    response = client.post(f'/api/pets/{pet_id}/contact', json=CONTACT)
    assert response.status_code == 500
    body = response.get_json()
    assert body['success'] is False
    assert body['error'] == {'message': 'Email could not be sent', 'statusCode': 500}

    # the counter is bumped before the owner is mailed
    assert app.services['pet_repository'].get(pet_id).contact_count == 1
    assert owner_notifications(app, owner[0].user_id, 'contact_request') == []
