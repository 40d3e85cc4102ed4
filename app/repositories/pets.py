# app/repositories/pets.py
from typing import List, Tuple

from app.models.pet import Pet, PetSearchFilters
from app.repositories.base import FirestoreRepository
from app.utils.geo import distance_to_point_km
from app.utils.pagination import Page, paginate


class PetRepository(FirestoreRepository[Pet]):
    """
    Pet posts. `search` is the single query entry point: it takes a typed
    `PetSearchFilters` and returns a typed `Page` of `Pet`.
    """
    collection_name = 'pets'
    id_field = 'pet_id'
    model = Pet

    def _matching(self, filters: PetSearchFilters) -> List[Tuple[Pet, float]]:
        """(pet, distance_km) pairs in result order. Distance is 0 when no geo filter applies."""
        candidates = self.find(**filters.equality_filters())
        matches = []
        for pet in candidates:
            if filters.breed and filters.breed.lower() not in (pet.breed or '').lower():
                continue
            if filters.color and filters.color.lower() not in (pet.color or '').lower():
                continue
            if filters.date_from and (pet.last_seen_date is None or pet.last_seen_date < filters.date_from):
                continue
            if filters.date_to and (pet.last_seen_date is None or pet.last_seen_date > filters.date_to):
                continue
            if filters.text:
                needle = filters.text.strip().lower()
                haystack = " ".join([pet.name or '', pet.breed or '', pet.color or '']).lower()
                if needle not in haystack:
                    continue
            distance = 0.0
            if filters.has_geo:
                distance = distance_to_point_km(
                    (pet.last_seen_location or {}).get('coordinates'), filters.latitude, filters.longitude
                )
                if distance is None or distance > filters.radius_km:
                    continue
            matches.append((pet, distance))

        if filters.has_geo:
            matches.sort(key=lambda item: item[1])
        else:
            matches.sort(key=lambda item: item[0].created_at, reverse=True)
        return matches

    def search(self, filters: PetSearchFilters) -> Page:
        matches = [pet for pet, _ in self._matching(filters)]
        return paginate(matches, filters.page, filters.limit)

    def count_matching(self, filters: PetSearchFilters) -> int:
        return len(self._matching(filters))

    def by_owner(self, owner_id: str) -> List[Pet]:
        return sorted(self.find(owner_id=owner_id), key=lambda p: p.created_at, reverse=True)

    def recent(self, limit: int = 5) -> List[Pet]:
        return sorted(self.find(), key=lambda p: p.created_at, reverse=True)[:limit]
