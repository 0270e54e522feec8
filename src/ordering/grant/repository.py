"""Repository for the PurchaseGrant aggregate."""

from ordering.domain import ordering
from ordering.grant.grant import PurchaseGrant, grant_key_for

PAGE_SIZE = 100


@ordering.repository(part_of=PurchaseGrant)
class PurchaseGrantRepository:
    def find_for(self, owner_id, item_ref) -> PurchaseGrant | None:
        return self._dao.query.filter(grant_key=grant_key_for(owner_id, item_ref)).all().first

    def grant_if_absent(self, owner_id, item_ref, order_id) -> tuple[PurchaseGrant, bool]:
        """Return the owner's grant for the item, creating it when missing.

        The second element tells whether a new grant was added.
        """
        existing = self.find_for(owner_id, item_ref)
        if existing is not None:
            return existing, False

        grant = PurchaseGrant.issue(owner_id, item_ref, order_id)
        self.add(grant)
        return grant, True

    def for_owner(self, owner_id) -> list[PurchaseGrant]:
        grants: list[PurchaseGrant] = []
        offset = 0
        while True:
            page = (
                self._dao.query.filter(owner_id=str(owner_id))
                .order_by("created_at")
                .offset(offset)
                .limit(PAGE_SIZE)
                .all()
                .items
            )
            grants.extend(page)
            if len(page) < PAGE_SIZE:
                return grants
            offset += PAGE_SIZE
