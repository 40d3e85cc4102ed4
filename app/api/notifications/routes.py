# app/api/notifications/routes.py
from flask import Blueprint, request, current_app, g

from app.core.security import protect, check_ownership, ResourceType
from app.utils.responses import api_response
from .schemas import NotificationQuerySchema, NotificationResponseSchema, NotificationListResponseSchema

notifications_bp = Blueprint('notifications_bp', __name__)


def dump_notification(notification) -> dict:
    return NotificationResponseSchema().dump(notification.to_dict())


@notifications_bp.route('', methods=['GET'])
@protect
def list_notifications():
    """The caller's unexpired notifications, newest first."""
    query = NotificationQuerySchema().load(request.args)
    page = current_app.services['notifications'].list_for(
        g.user.user_id, is_read=query.get('is_read'), page=query['page'], limit=query['limit']
    )
    view = {"notifications": [n.to_dict() for n in page.items], "pagination": page.pagination}
    return api_response(NotificationListResponseSchema().dump(view))


@notifications_bp.route('/unread-count', methods=['GET'])
@protect
def unread_count():
    count = current_app.services['notifications'].unread_count(g.user.user_id)
    return api_response({"count": count})


@notifications_bp.route('/mark-all-read', methods=['PATCH'])
@protect
def mark_all_read():
    count = current_app.services['notifications'].mark_all_read(g.user.user_id)
    return api_response({"modifiedCount": count}, "All notifications marked as read")


@notifications_bp.route('/<string:notification_id>', methods=['GET'])
@protect
@check_ownership(ResourceType.NOTIFICATION)
def get_notification(notification_id: str):
    """Opening a notification marks it read."""
    notification = current_app.services['notifications'].mark_read(g.resource)
    return api_response({"notification": dump_notification(notification)})


@notifications_bp.route('/<string:notification_id>/read', methods=['PATCH'])
@protect
@check_ownership(ResourceType.NOTIFICATION)
def mark_read(notification_id: str):
    notification = current_app.services['notifications'].mark_read(g.resource)
    return api_response({"notification": dump_notification(notification)}, "Notification marked as read")


@notifications_bp.route('/<string:notification_id>', methods=['DELETE'])
@protect
@check_ownership(ResourceType.NOTIFICATION)
def delete_notification(notification_id: str):
    current_app.services['notifications'].delete(notification_id)
    return api_response(message="Notification deleted successfully")
