# app/api/pets/routes.py
from flask import Blueprint, request, current_app, g

from app.core.security import protect, optional_auth, authorize, check_ownership, ResourceType
from app.schemas.base import PaginationQuerySchema
from app.utils.responses import api_response
from .schemas import (
    PetCreateSchema,
    PetUpdateSchema,
    PetSearchQuerySchema,
    ContactOwnerSchema,
    PetResponseSchema,
    PetListResponseSchema
)
from .services import build_filters

pets_bp = Blueprint('pets_bp', __name__)


def photo_files():
    """Uploaded files of the multipart `photos` field."""
    return [f for f in request.files.getlist('photos') if f and f.filename]


def request_payload():
    """Form fields for multipart requests, the JSON body otherwise."""
    if request.mimetype == 'multipart/form-data':
        return request.form
    return request.get_json(silent=True) or {}


def dump_pet(pet) -> dict:
    return PetResponseSchema().dump(current_app.services['pets'].to_views([pet])[0])


@pets_bp.route('', methods=['GET'])
@optional_auth
def list_pets():
    """Filtered, paged list. Only approved posts unless the caller is an admin."""
    query = PetSearchQuerySchema().load(request.args)
    pet_service = current_app.services['pets']
    page = pet_service.search(build_filters(query), g.user)
    return api_response(PetListResponseSchema().dump(pet_service.page_view(page)))


@pets_bp.route('/search/nearby', methods=['GET'])
def search_nearby():
    query = PetSearchQuerySchema().load(request.args)
    pet_service = current_app.services['pets']
    page = pet_service.nearby(build_filters(query))
    return api_response(PetListResponseSchema().dump(pet_service.page_view(page)))


@pets_bp.route('', methods=['POST'])
@protect
def create_pet():
    """Multipart: pet fields plus 1..10 image files in `photos`."""
    pet_service = current_app.services['pets']
    files = photo_files()
    pet_service.ensure_photos(files)
    data = PetCreateSchema().load(request_payload())
    pet = pet_service.create(g.user, data, files)
    return api_response({"pet": dump_pet(pet)}, "Pet post created successfully", 201)


@pets_bp.route('/my-pets', methods=['GET'])
@protect
def my_pets():
    query = PaginationQuerySchema().load(request.args)
    pet_service = current_app.services['pets']
    page = pet_service.my_pets(g.user, query['page'], query['limit'])
    return api_response(PetListResponseSchema().dump(pet_service.page_view(page)))


@pets_bp.route('/<string:pet_id>', methods=['GET'])
@optional_auth
def get_pet(pet_id: str):
    pet = current_app.services['pets'].get_detail(pet_id, g.user)
    return api_response({"pet": dump_pet(pet)})


@pets_bp.route('/<string:pet_id>', methods=['PUT'])
@protect
@check_ownership(ResourceType.PET)
def update_pet(pet_id: str):
    data = PetUpdateSchema().load(request_payload())
    pet = current_app.services['pets'].update(g.resource, g.user, data, photo_files())
    return api_response({"pet": dump_pet(pet)}, "Pet post updated successfully")


@pets_bp.route('/<string:pet_id>', methods=['DELETE'])
@protect
@check_ownership(ResourceType.PET)
def delete_pet(pet_id: str):
    current_app.services['pets'].delete(g.resource)
    return api_response(message="Pet post deleted successfully")


@pets_bp.route('/<string:pet_id>/contact', methods=['POST'])
def contact_owner(pet_id: str):
    data = ContactOwnerSchema().load(request.get_json(silent=True) or {})
    current_app.services['pets'].contact_owner(pet_id, data)
    return api_response(message="Contact request sent successfully")


@pets_bp.route('/<string:pet_id>/reunite', methods=['PATCH'])
@protect
@check_ownership(ResourceType.PET)
def mark_reunited(pet_id: str):
    pet = current_app.services['pets'].reunite(g.resource)
    return api_response({"pet": dump_pet(pet)}, "Pet marked as reunited")


@pets_bp.route('/<string:pet_id>/approve', methods=['PATCH'])
@protect
@authorize('admin')
def approve_pet(pet_id: str):
    pet_service = current_app.services['pets']
    pet = pet_service.approve(pet_service.get_or_404(pet_id), g.user)
    return api_response({"pet": dump_pet(pet)}, "Pet post approved successfully")
