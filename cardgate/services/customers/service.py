"""Per-user saved payment info, scoped to test or live mode."""

from sqlalchemy import delete

from cardgate.common.logging import logger
from cardgate.services.customers.models import StoredCustomer
from cardgate.services.customers.schemas import CardInfo, CustomerRecord


class CustomerStore:
    """Read and replace-on-write access to `stored_customers`.

    Writes are last-write-wins; concurrent checkouts for the same user are not
    serialized. The caller owns the commit.
    """

    def __init__(self, db, livemode: bool) -> None:
        self.db = db
        self.livemode = livemode

    def get(self, user_id: str) -> CustomerRecord | None:
        row = self.db.get(StoredCustomer, (user_id, self.livemode))
        if row is None:
            return None
        return CustomerRecord(
            customer_id=row.customer_id,
            cards=[CardInfo(**card) for card in row.cards or []],
            default_card_id=row.default_card_id,
        )

    def put(self, user_id: str, record: CustomerRecord) -> None:
        cards = [card.model_dump() for card in record.cards]
        row = self.db.get(StoredCustomer, (user_id, self.livemode))
        if row is None:
            self.db.add(
                StoredCustomer(
                    user_id=user_id,
                    livemode=self.livemode,
                    customer_id=record.customer_id,
                    default_card_id=record.default_card_id,
                    cards=cards,
                )
            )
            return
        row.customer_id = record.customer_id
        row.default_card_id = record.default_card_id
        row.cards = cards

    def delete_test_data(self) -> int:
        """Remove every test-mode customer row regardless of this store's mode."""

        result = self.db.execute(delete(StoredCustomer).where(StoredCustomer.livemode.is_(False)))
        logger.warning("test customer data deleted rows=%s", result.rowcount)
        return result.rowcount
