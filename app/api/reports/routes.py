# app/api/reports/routes.py
from flask import Blueprint, request, current_app, g

from app.core.security import protect, check_ownership, ResourceType
from app.models.report import ReportStatus
from app.utils.responses import api_response
from .schemas import (
    ReportCreateSchema,
    ReportUpdateSchema,
    ReportQuerySchema,
    ReportResponseSchema,
    ReportListResponseSchema
)

reports_bp = Blueprint('reports_bp', __name__)


def dump_report(report) -> dict:
    return ReportResponseSchema().dump(current_app.services['reports'].to_views([report])[0])


def _list(finder):
    query = ReportQuerySchema().load(request.args)
    status = ReportStatus(query['status']) if query.get('status') else None
    page = finder(g.user, status, query['page'], query['limit'])
    view = current_app.services['reports'].page_view(page)
    return api_response(ReportListResponseSchema().dump(view))


@reports_bp.route('', methods=['POST'])
@protect
def create_report():
    data = ReportCreateSchema().load(request.get_json(silent=True) or {})
    report = current_app.services['reports'].create(g.user, data)
    return api_response({"report": dump_report(report)}, "Report submitted successfully", 201)


@reports_bp.route('', methods=['GET'])
@protect
def list_my_reports():
    """Reports filed by the caller or naming the caller."""
    return _list(current_app.services['reports'].list_for)


@reports_bp.route('/about-me', methods=['GET'])
@protect
def reports_about_me():
    return _list(current_app.services['reports'].about_me)


@reports_bp.route('/about-my-pets', methods=['GET'])
@protect
def reports_about_my_pets():
    return _list(current_app.services['reports'].about_my_pets)


@reports_bp.route('/<string:report_id>', methods=['GET'])
@protect
def get_report(report_id: str):
    report = current_app.services['reports'].get_visible(report_id, g.user)
    return api_response({"report": dump_report(report)})


@reports_bp.route('/<string:report_id>', methods=['PUT'])
@protect
@check_ownership(ResourceType.REPORT)
def update_report(report_id: str):
    changes = ReportUpdateSchema().load(request.get_json(silent=True) or {})
    report = current_app.services['reports'].update_own(g.resource, changes)
    return api_response({"report": dump_report(report)}, "Report updated successfully")


@reports_bp.route('/<string:report_id>', methods=['DELETE'])
@protect
@check_ownership(ResourceType.REPORT)
def delete_report(report_id: str):
    current_app.services['reports'].delete_own(g.resource)
    return api_response(message="Report deleted successfully")
