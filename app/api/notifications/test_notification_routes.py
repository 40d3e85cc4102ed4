# app/api/notifications/test_notification_routes.py
from datetime import timedelta

import pytest

from app.models.notification import NotificationType
from app.utils.datetime_utils import DateTimeUtils


@pytest.fixture
def notify(app):
    def _notify(recipient, title="Hello", n_type=NotificationType.ADMIN_ACTION):
        return app.services['notifications'].create(recipient.user_id, n_type, title, f"{title} message")
    return _notify


def expire(app, notification):
    app.services['db'].collection('notifications').document(notification.notification_id).update({
        'expires_at': DateTimeUtils.now() - timedelta(minutes=1)
    })


def test_list_and_unread_count(client, owner, notify):
    notify(owner[0], "First")
    notify(owner[0], "Second")

    listed = client.get('/api/notifications', headers=owner[1]).get_json()['data']
    assert {n['title'] for n in listed['notifications']} == {'First', 'Second'}
    assert listed['pagination']['total'] == 2

    count = client.get('/api/notifications/unread-count', headers=owner[1]).get_json()['data']['count']
    assert count == 2


def test_expired_notification_hidden_from_lists_but_readable_by_id(client, app, owner, notify):
    kept = notify(owner[0], "Fresh")
    stale = notify(owner[0], "Stale")
    expire(app, stale)

    listed = client.get('/api/notifications', headers=owner[1]).get_json()['data']['notifications']
    assert [n['id'] for n in listed] == [kept.notification_id]
    assert client.get('/api/notifications/unread-count', headers=owner[1]).get_json()['data']['count'] == 1

    response = client.get(f'/api/notifications/{stale.notification_id}', headers=owner[1])
    assert response.status_code == 200
    assert response.get_json()['data']['notification']['title'] == 'Stale'


def test_get_by_id_marks_read(client, owner, notify):
    notification = notify(owner[0])
    response = client.get(f'/api/notifications/{notification.notification_id}', headers=owner[1])
    body = response.get_json()['data']['notification']
    assert body['isRead'] is True
    assert body['readAt'] is not None
    assert client.get('/api/notifications/unread-count', headers=owner[1]).get_json()['data']['count'] == 0


def test_filter_by_read_state(client, owner, notify):
    read = notify(owner[0], "Read")
    notify(owner[0], "Unread")
    client.patch(f'/api/notifications/{read.notification_id}/read', headers=owner[1])

    unread = client.get('/api/notifications?isRead=false', headers=owner[1]).get_json()['data']['notifications']
    assert [n['title'] for n in unread] == ['Unread']


def test_mark_all_read(client, owner, other_user, notify):
    notify(owner[0])
    notify(owner[0])
    notify(other_user[0])

    response = client.patch('/api/notifications/mark-all-read', headers=owner[1])
    assert response.status_code == 200
    assert response.get_json()['data']['modifiedCount'] == 2
    assert client.get('/api/notifications/unread-count', headers=owner[1]).get_json()['data']['count'] == 0
    assert client.get('/api/notifications/unread-count', headers=other_user[1]).get_json()['data']['count'] == 1


def test_notifications_are_private(client, owner, other_user, admin, notify):
    notification = notify(owner[0])
    path = f'/api/notifications/{notification.notification_id}'
    assert client.get(path, headers=other_user[1]).status_code == 403
    # no admin bypass for someone else's inbox
    assert client.get(path, headers=admin[1]).status_code == 403
    assert client.delete(path, headers=other_user[1]).status_code == 403
    assert client.get('/api/notifications/nope', headers=owner[1]).status_code == 404


def test_delete_notification(client, app, owner, notify):
    notification = notify(owner[0])
    response = client.delete(f'/api/notifications/{notification.notification_id}', headers=owner[1])
    assert response.status_code == 200
    assert app.services['notification_repository'].get(notification.notification_id) is None


def test_purge_expired(app, owner, notify):
    keep = notify(owner[0])
    gone = notify(owner[0])
    expire(app, gone)

    assert app.services['notifications'].purge_expired() == 1
    repository = app.services['notification_repository']
    assert repository.get(gone.notification_id) is None
    assert repository.get(keep.notification_id) is not None
