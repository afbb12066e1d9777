"""Repository for the StockRecord aggregate."""

from stockledger.domain import stockledger
from stockledger.stock.record import RecordKind, StockRecord


@stockledger.repository(part_of=StockRecord)
class StockRecordRepository:
    """Lookups by catalog coordinates on top of the standard CRUD operations."""

    def find_by_variant(self, product_id, variant_id=None):
        """Return the record for a (product, variant) pair, or None.

        ``variant_id=None`` addresses the product's regular record.
        """
        if variant_id is None:
            matches = self._dao.query.filter(
                product_id=str(product_id),
                kind=RecordKind.REGULAR.value,
            ).all().items
        else:
            matches = self._dao.query.filter(
                product_id=str(product_id),
                variant_id=str(variant_id),
            ).all().items
        return matches[0] if matches else None

    def find_by_product(self, product_id):
        return self._dao.query.filter(product_id=str(product_id)).all().items

    def find_all(self):
        return self._dao.query.all().items
