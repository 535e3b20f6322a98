"""AWS Lambda handler that starts a PayPal donation checkout."""
import logging
from typing import Any, Dict

from config.settings import Settings
from config.sites import resolve_site
from handlers.common import (
    get_header,
    get_method,
    json_response,
    parse_json_body,
    preflight_response,
    setup_logging,
)
from processor.errors import ConfigurationError, ValidationError
from processor.models import DonationRequest
from providers.paypal import PayPalClient
from storage.donation_store import DonationStore


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Create a payment order for a donation and record it as pending.

    Body: ``{amount, donorName?, donorEmail?, message?}`` with ``amount`` in
    cents. Responds with ``{url}``, the provider page the donor is sent to.
    """
    if get_method(event) == 'OPTIONS':
        return preflight_response()

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    try:
        request = DonationRequest.from_payload(parse_json_body(event))
        amount = request.amount_cents()
    except ValidationError as e:
        logger.warning(f"Rejected donation request: {e.message}")
        return json_response(400, {'error': e.message})

    try:
        if not (settings.paypal_client_id and settings.paypal_client_secret):
            raise ConfigurationError('PayPal credentials are not configured')

        site = resolve_site(get_header(event, 'Host'))
        origin = (get_header(event, 'Origin') or f"https://{site.domain}").rstrip('/')

        client = PayPalClient(
            settings.paypal_client_id,
            settings.paypal_client_secret,
            settings.paypal_base_url,
            timeout=settings.http_timeout,
        )
        order = client.create_order(
            amount,
            site.donation_description,
            return_url=f"{origin}/donation-success",
            cancel_url=f"{origin}/donation-cancelled",
        )

        store = DonationStore(settings.donations_table, settings.aws_region)
        store.record_pending(
            order.order_id,
            amount,
            request.donor_name,
            request.donor_email,
            request.message,
            user_id=get_header(event, 'X-User-Id'),
        )

        return json_response(200, {'url': order.approval_url})

    except Exception as e:
        logger.error(f"Error creating donation: {e}", exc_info=True)
        return json_response(500, {'error': getattr(e, 'message', str(e))})
