"""Restaurant service layer."""

from tastemap.domain.directories import RestaurantRecord
from tastemap.errors import not_found
from tastemap.repositories.memory import InMemoryStore
from tastemap.schemas.restaurant import Restaurant


class RestaurantService:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def create_restaurant(self, *, owner_id: int, name: str) -> Restaurant:
        record = self._store.create_restaurant(owner_id=owner_id, name=name)
        return self._to_restaurant(record)

    def get_restaurant(self, *, restaurant_id: int) -> Restaurant:
        record = self._store.get_restaurant(restaurant_id)
        if record is None:
            raise not_found("Restaurant not found.")
        return self._to_restaurant(record)

    def list_verified(self) -> list[Restaurant]:
        return [self._to_restaurant(record) for record in self._store.list_verified_restaurants()]

    @staticmethod
    def _to_restaurant(record: RestaurantRecord) -> Restaurant:
        return Restaurant(
            id=record.id,
            name=record.name,
            owner_id=record.owner_id,
            verified=record.verified,
            created_at=record.created_at,
        )
