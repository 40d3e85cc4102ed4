# app/api/admin/test_admin_routes.py
import pytest


@pytest.fixture
def reporter(make_user):
    return make_user(name="Rita Reporter", email="reporter@example.com")


def test_admin_routes_reject_regular_users(client, owner):
    response = client.get('/api/admin/dashboard', headers=owner[1])
    assert response.status_code == 403
    assert response.get_json()['message'] == 'User role user is not authorized to access this route'
    assert client.get('/api/admin/users').status_code == 401


def test_dashboard(client, owner, admin, create_pet, approve):
    approve(create_pet(owner[1])['id'])
    create_pet(owner[1])

    response = client.get('/api/admin/dashboard', headers=admin[1])
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['stats']['totalUsers'] == 2
    assert data['stats']['activeUsers'] == 2
    assert data['stats']['totalPets'] == 2
    assert data['stats']['approvedPets'] == 1
    assert data['stats']['pendingPets'] == 1
    assert data['stats']['totalReports'] == 0
    assert len(data['recentPets']) == 2
    assert {u['email'] for u in data['recentUsers']} == {'owner@example.com', 'admin@example.com'}


# --- users ---

def test_list_and_search_users(client, admin, owner, other_user):
    everyone = client.get('/api/admin/users', headers=admin[1]).get_json()['data']
    assert everyone['pagination']['total'] == 3

    found = client.get('/api/admin/users?search=stranger', headers=admin[1]).get_json()['data']['users']
    assert [u['email'] for u in found] == ['stranger@example.com']

    admins = client.get('/api/admin/users?role=admin', headers=admin[1]).get_json()['data']['users']
    assert [u['role'] for u in admins] == ['admin']


def test_user_detail_lists_pets(client, admin, owner, create_pet):
    pet = create_pet(owner[1])
    response = client.get(f'/api/admin/users/{owner[0].user_id}', headers=admin[1])
    user = response.get_json()['data']['user']
    assert user['email'] == 'owner@example.com'
    assert [p['id'] for p in user['pets']] == [pet['id']]
    assert client.get('/api/admin/users/nope', headers=admin[1]).status_code == 404


def test_update_user(client, admin, owner):
    response = client.put(f'/api/admin/users/{owner[0].user_id}', headers=admin[1],
                          json={'role': 'shelter', 'isEmailVerified': True})
    assert response.status_code == 200
    user = response.get_json()['data']['user']
    assert user['role'] == 'shelter'
    assert user['isEmailVerified'] is True


def test_update_user_email_conflict(client, admin, owner, other_user):
    response = client.put(f'/api/admin/users/{owner[0].user_id}', headers=admin[1],
                          json={'email': 'stranger@example.com'})
    assert response.status_code == 409


def test_update_user_email_moves_reservation(client, app, admin, owner):
    response = client.put(f'/api/admin/users/{owner[0].user_id}', headers=admin[1],
                          json={'email': 'Olivia@Example.com'})
    assert response.status_code == 200
    assert response.get_json()['data']['user']['email'] == 'olivia@example.com'

    users = app.services['user_repository']
    assert users.reserve_email('olivia@example.com', 'someone-else') is False
    assert users.reserve_email('owner@example.com', 'someone-else') is True


def test_update_user_email_claimed_concurrently(client, app, admin, owner):
    app.services['user_repository'].reserve_email('taken@example.com', 'someone-else')
    response = client.put(f'/api/admin/users/{owner[0].user_id}', headers=admin[1],
                          json={'email': 'taken@example.com'})
    assert response.status_code == 409
    assert app.services['user_repository'].get(owner[0].user_id).email == 'owner@example.com'


def test_admin_cannot_change_own_role(client, admin):
    response = client.put(f'/api/admin/users/{admin[0].user_id}', headers=admin[1], json={'role': 'user'})
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Cannot change your own role'


def test_delete_user_is_soft_and_hides_posts(client, app, admin, owner, create_pet, approve):
    pet_id = create_pet(owner[1])['id']
    approve(pet_id)

    response = client.delete(f'/api/admin/users/{owner[0].user_id}', headers=admin[1])
    assert response.status_code == 200

    user = app.services['user_repository'].get(owner[0].user_id)
    assert user is not None and user.is_active is False
    assert app.services['pet_repository'].get(pet_id).is_active is False
    assert client.get(f'/api/pets/{pet_id}').status_code == 404
    # the deactivated account's token stops working
    assert client.get('/api/auth/me', headers=owner[1]).status_code == 401


def test_admin_cannot_delete_self(client, admin):
    response = client.delete(f'/api/admin/users/{admin[0].user_id}', headers=admin[1])
    assert response.status_code == 400


# --- pets ---

def test_admin_pet_listing_filters(client, admin, owner, other_user, create_pet, approve):
    approved = create_pet(owner[1], name='Sunny')['id']
    approve(approved)
    pending = create_pet(other_user[1], name='Shadow')['id']

    only_pending = client.get('/api/admin/pets?isApproved=false', headers=admin[1]).get_json()['data']['pets']
    assert [p['id'] for p in only_pending] == [pending]

    by_owner = client.get(f'/api/admin/pets?owner={owner[0].user_id}', headers=admin[1]).get_json()['data']['pets']
    assert [p['id'] for p in by_owner] == [approved]

    by_text = client.get('/api/admin/pets?search=shad', headers=admin[1]).get_json()['data']['pets']
    assert [p['id'] for p in by_text] == [pending]


def test_admin_pet_detail_ignores_active_flag(client, app, admin, owner, create_pet):
    pet_id = create_pet(owner[1])['id']
    app.services['pet_repository'].update(pet_id, {'is_active': False})
    assert client.get(f'/api/admin/pets/{pet_id}', headers=admin[1]).status_code == 200


def test_admin_approve_rejects_already_approved(client, admin, owner, create_pet):
    pet_id = create_pet(owner[1])['id']
    assert client.patch(f'/api/admin/pets/{pet_id}/approve', headers=admin[1]).status_code == 200
    again = client.patch(f'/api/admin/pets/{pet_id}/approve', headers=admin[1])
    assert again.status_code == 400
    assert again.get_json()['message'] == 'Pet post is already approved'


def test_admin_update_approval_notifies_owner(client, app, admin, owner, create_pet):
    pet_id = create_pet(owner[1])['id']
    response = client.put(f'/api/admin/pets/{pet_id}', headers=admin[1], json={'isApproved': True})
    assert response.status_code == 200
    pet = response.get_json()['data']['pet']
    assert pet['isApproved'] is True
    assert pet['approvedBy'] == admin[0].user_id

    kinds = sorted(n.type.value for n in app.services['notification_repository'].find(recipient_id=owner[0].user_id))
    assert kinds == ['post_approved', 'post_edited']


def test_admin_delete_pet(client, app, admin, owner, create_pet):
    pet_id = create_pet(owner[1])['id']
    assert client.delete(f'/api/admin/pets/{pet_id}', headers=admin[1]).status_code == 200
    assert app.services['pet_repository'].get(pet_id) is None
    assert client.delete(f'/api/admin/pets/{pet_id}', headers=admin[1]).status_code == 404


# --- reports ---

def test_admin_report_listing_orders_by_priority(client, admin, reporter, owner, other_user):
    low = client.post('/api/reports', headers=reporter[1], json={
        'type': 'user', 'reason': 'Rude', 'reportedUserId': owner[0].user_id
    }).get_json()['data']['report']['id']
    urgent = client.post('/api/reports', headers=reporter[1], json={
        'type': 'user', 'reason': 'Scam', 'reportedUserId': other_user[0].user_id
    }).get_json()['data']['report']['id']
    client.put(f'/api/admin/reports/{low}', headers=admin[1], json={'priority': 'low'})
    client.put(f'/api/admin/reports/{urgent}', headers=admin[1], json={'priority': 'urgent'})

    reports = client.get('/api/admin/reports', headers=admin[1]).get_json()['data']['reports']
    assert [r['id'] for r in reports] == [urgent, low]

    filtered = client.get(f'/api/admin/reports?reportedUser={owner[0].user_id}', headers=admin[1])
    assert [r['id'] for r in filtered.get_json()['data']['reports']] == [low]


def test_admin_report_update_validation(client, admin, reporter, owner):
    report_id = client.post('/api/reports', headers=reporter[1], json={
        'type': 'user', 'reason': 'Rude', 'reportedUserId': owner[0].user_id
    }).get_json()['data']['report']['id']
    bad = client.put(f'/api/admin/reports/{report_id}', headers=admin[1], json={'status': 'closed'})
    assert bad.status_code == 400
    assert client.get('/api/admin/reports/nope', headers=admin[1]).status_code == 404
    review = client.put(f'/api/admin/reports/{report_id}', headers=admin[1], json={'status': 'under_review'})
    assert review.get_json()['data']['report']['reviewedBy'] == admin[0].user_id
