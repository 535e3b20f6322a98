"""Storage for donation rows."""
import logging
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional

from processor.models import Donation
from storage.dynamodb_manager import DynamoDBManager, to_dynamodb

logger = logging.getLogger(__name__)


class DonationStore(DynamoDBManager):
    """Donations table, keyed by 'id'."""

    def record_pending(
        self,
        order_id: str,
        amount: int,
        donor_name: Optional[str],
        email: Optional[str],
        message: Optional[str],
        user_id: Optional[str] = None,
    ) -> Donation:
        """
        Record a donation whose payment order has been created but not captured.

        Args:
            order_id: Payment provider order id
            amount: Amount in cents
            donor_name: Shown publicly; defaults to 'Anonymous'
            email: Donor email, if given
            message: Optional note from the donor
            user_id: Signed-in user, if any

        Returns:
            The stored Donation
        """
        donation = Donation(
            id=str(uuid.uuid4()),
            order_id=order_id,
            amount=amount,
            donor_name=donor_name or 'Anonymous',
            email=email,
            message=message or '',
            status='pending',
            user_id=user_id,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self.table.put_item(Item=to_dynamodb(asdict(donation)))
        logger.info(f"Recorded pending donation {donation.id} for order {order_id}")
        return donation
