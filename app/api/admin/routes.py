# app/api/admin/routes.py
from flask import Blueprint, request, current_app, g

from app.api.auth.schemas import UserProfileResponseSchema
from app.api.pets.routes import dump_pet, photo_files, request_payload
from app.api.pets.schemas import AdminPetUpdateSchema, AdminPetQuerySchema, PetListResponseSchema
from app.api.reports.routes import dump_report
from app.api.reports.schemas import AdminReportQuerySchema, AdminReportUpdateSchema, ReportListResponseSchema
from app.core.security import protect, authorize
from app.utils.responses import api_response
from .schemas import (
    AdminUserQuerySchema,
    AdminUserUpdateSchema,
    AdminUserListResponseSchema,
    AdminUserDetailSchema,
    DashboardResponseSchema
)

admin_bp = Blueprint('admin_bp', __name__)


@protect
@authorize('admin')
def _admin_gate():
    return None


@admin_bp.before_request
def require_admin():
    """Every admin route needs a valid token and the admin role. CORS preflights pass through."""
    if request.method == 'OPTIONS':
        return None
    return _admin_gate()


@admin_bp.route('/dashboard', methods=['GET'])
def dashboard():
    view = current_app.services['admin'].dashboard()
    return api_response(DashboardResponseSchema().dump(view))


# =====================================================================================
# Users
# =====================================================================================
@admin_bp.route('/users', methods=['GET'])
def list_users():
    query = AdminUserQuerySchema().load(request.args)
    page = current_app.services['admin'].list_users(query)
    view = {"users": [u.to_dict() for u in page.items], "pagination": page.pagination}
    return api_response(AdminUserListResponseSchema().dump(view))


@admin_bp.route('/users/<string:user_id>', methods=['GET'])
def get_user(user_id: str):
    view = current_app.services['admin'].user_detail(user_id)
    return api_response({"user": AdminUserDetailSchema().dump(view)})


@admin_bp.route('/users/<string:user_id>', methods=['PUT'])
def update_user(user_id: str):
    data = AdminUserUpdateSchema().load(request.get_json(silent=True) or {})
    user = current_app.services['admin'].update_user(user_id, g.user, data)
    return api_response({"user": UserProfileResponseSchema().dump(user.to_dict())}, "User updated successfully")


@admin_bp.route('/users/<string:user_id>', methods=['DELETE'])
def delete_user(user_id: str):
    current_app.services['admin'].delete_user(user_id, g.user)
    return api_response(message="User deleted successfully")


# =====================================================================================
# Pets
# =====================================================================================
@admin_bp.route('/pets', methods=['GET'])
def list_pets():
    query = AdminPetQuerySchema().load(request.args)
    page = current_app.services['admin'].list_pets(query)
    return api_response(PetListResponseSchema().dump(current_app.services['pets'].page_view(page)))


@admin_bp.route('/pets/<string:pet_id>', methods=['GET'])
def get_pet(pet_id: str):
    pet = current_app.services['pets'].get_or_404(pet_id)
    return api_response({"pet": dump_pet(pet)})


@admin_bp.route('/pets/<string:pet_id>', methods=['PUT'])
def update_pet(pet_id: str):
    pet_service = current_app.services['pets']
    pet = pet_service.get_or_404(pet_id)
    data = AdminPetUpdateSchema().load(request_payload())
    pet = pet_service.update(pet, g.user, data, photo_files())
    return api_response({"pet": dump_pet(pet)}, "Pet post updated successfully")


@admin_bp.route('/pets/<string:pet_id>/approve', methods=['PATCH'])
def approve_pet(pet_id: str):
    pet_service = current_app.services['pets']
    pet = pet_service.approve(pet_service.get_or_404(pet_id), g.user, reject_if_approved=True)
    return api_response({"pet": dump_pet(pet)}, "Pet post approved successfully")


@admin_bp.route('/pets/<string:pet_id>', methods=['DELETE'])
def delete_pet(pet_id: str):
    pet_service = current_app.services['pets']
    pet_service.delete(pet_service.get_or_404(pet_id))
    return api_response(message="Pet post deleted successfully")


# =====================================================================================
# Reports
# =====================================================================================
@admin_bp.route('/reports', methods=['GET'])
def list_reports():
    query = AdminReportQuerySchema().load(request.args)
    report_service = current_app.services['reports']
    page = report_service.admin_search(query)
    return api_response(ReportListResponseSchema().dump(report_service.page_view(page)))


@admin_bp.route('/reports/<string:report_id>', methods=['GET'])
def get_report(report_id: str):
    report = current_app.services['reports'].get_or_404(report_id)
    return api_response({"report": dump_report(report)})


@admin_bp.route('/reports/<string:report_id>', methods=['PUT'])
def update_report(report_id: str):
    report_service = current_app.services['reports']
    report = report_service.get_or_404(report_id)
    data = AdminReportUpdateSchema().load(request.get_json(silent=True) or {})
    report = report_service.admin_update(report, g.user, data)
    return api_response({"report": dump_report(report)}, "Report updated successfully")
