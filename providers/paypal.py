"""PayPal Orders client used for donations."""
import logging
from dataclasses import dataclass

import requests
from requests.auth import HTTPBasicAuth

from processor.errors import ProviderError

logger = logging.getLogger(__name__)

APPROVAL_RELS = ('approve', 'payer-action')


@dataclass
class PayPalOrder:
    order_id: str
    approval_url: str


class PayPalClient:
    """Client-credentials PayPal client for one-off USD orders."""

    def __init__(self, client_id: str, client_secret: str, base_url: str, timeout: int = 30):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def get_access_token(self) -> str:
        """
        Exchange the client credentials for an OAuth access token.

        Raises:
            ProviderError: If PayPal rejects the credentials or is unreachable
        """
        try:
            response = requests.post(
                f"{self.base_url}/v1/oauth2/token",
                auth=HTTPBasicAuth(self.client_id, self.client_secret),
                data={'grant_type': 'client_credentials'},
                headers={'Accept': 'application/json'},
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()['access_token']
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.error(f"PayPal token request failed: {e}")
            raise ProviderError(f"PayPal authentication failed: {e}", provider='paypal')

    def create_order(
        self,
        amount_cents: int,
        description: str,
        return_url: str,
        cancel_url: str,
    ) -> PayPalOrder:
        """
        Create a capture-intent order for ``amount_cents / 100`` USD.

        Returns:
            PayPalOrder with the id and the URL the donor must visit to approve

        Raises:
            ProviderError: On any provider failure or a response without an approval link
        """
        token = self.get_access_token()
        body = {
            'intent': 'CAPTURE',
            'purchase_units': [{
                'description': description,
                'amount': {
                    'currency_code': 'USD',
                    'value': f"{amount_cents / 100:.2f}",
                },
            }],
            'application_context': {
                'return_url': return_url,
                'cancel_url': cancel_url,
                'shipping_preference': 'NO_SHIPPING',
                'user_action': 'PAY_NOW',
            },
        }

        try:
            response = requests.post(
                f"{self.base_url}/v2/checkout/orders",
                json=body,
                headers={'Authorization': f"Bearer {token}"},
                timeout=self.timeout
            )
            response.raise_for_status()
            order = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"PayPal order creation failed: {e}")
            raise ProviderError(f"PayPal order creation failed: {e}", provider='paypal')

        approval_url = next(
            (link['href'] for link in order.get('links', []) if link.get('rel') in APPROVAL_RELS),
            None
        )
        if not order.get('id') or not approval_url:
            raise ProviderError('PayPal order response had no approval link', provider='paypal')

        logger.info(f"Created PayPal order {order['id']} for {amount_cents} cents")
        return PayPalOrder(order_id=order['id'], approval_url=approval_url)
