"""Stock record store backed by the protean repository of the active domain."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from stockledger.persistence.port import StaleRecord, StockRecordStore
from stockledger.stock.record import StockRecord
from stockledger.utils.db import store_guard


class RepositoryStore(StockRecordStore):
    """Reads and writes go through ``current_domain.repository_for(StockRecord)``.

    Callers must run inside a domain context. Access is serialized by
    ``store_guard``, which like the executor's record locks only covers one
    process: run the API with a single worker process.
    """

    @staticmethod
    def _repository():
        return current_domain.repository_for(StockRecord)

    def load(self, item_id):
        with store_guard:
            try:
                return self._repository().get(str(item_id))
            except ObjectNotFoundError:
                return None

    def load_by_variant(self, product_id, variant_id=None):
        with store_guard:
            return self._repository().find_by_variant(product_id, variant_id)

    def load_by_product(self, product_id):
        with store_guard:
            return list(self._repository().find_by_product(product_id))

    def save(self, record):
        """Write the record if it is exactly one version ahead of the stored copy.

        A new record (nothing stored yet) is always written. Anything else
        means another writer got there first, and ``StaleRecord`` is raised.
        """
        with store_guard:
            repository = self._repository()
            try:
                stored = repository.get(str(record.id))
            except ObjectNotFoundError:
                stored = None

            if stored is not None and (stored.version or 0) != (record.version or 0) - 1:
                raise StaleRecord(
                    f"Stock record {record.id} is stored at version {stored.version}, "
                    f"refusing to overwrite it with version {record.version}"
                )
            repository.add(record)

    def all(self):
        with store_guard:
            return list(self._repository().find_all())
