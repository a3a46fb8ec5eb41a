"""
Briez Print Agent Client
========================

Python SDK for talking to a running print agent.

Usage:
    from briez_print_agent.client import PrintAgentClient

    client = PrintAgentClient('http://localhost:3001')

    # List printers
    printers = client.list_printers()

    # Print an order ticket
    client.print_order('net-192-168-0-100', {
        'mesa': '12',
        'numero': '42',
        'itens': [{'quantidade': 2, 'nome': 'Coffee'}],
    })
"""

import base64
import requests
from typing import Dict, Any, List, Union


class PrintAgentClient:
    """Client for the Briez Print Agent."""

    def __init__(self, base_url: str = 'http://localhost:3001', timeout: float = 30):
        """
        Initialize client.

        Args:
            base_url: Base URL of the agent
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _request(self, method: str, endpoint: str, data: Dict = None) -> Any:
        """Make API request."""
        url = f'{self.base_url}{endpoint}'

        try:
            if method == 'GET':
                response = requests.get(url, timeout=self.timeout)
            elif method == 'POST':
                response = requests.post(url, json=data, timeout=self.timeout)
            else:
                raise ValueError(f'Unknown method: {method}')

            return response.json()

        except requests.exceptions.Timeout:
            return {'success': False, 'message': 'Request timeout'}
        except requests.exceptions.ConnectionError:
            return {'success': False, 'message': f'Cannot connect to {self.base_url}'}
        except ValueError as e:
            return {'success': False, 'message': f'Invalid response: {e}'}

    # =========================================================================
    # Health
    # =========================================================================

    def health(self) -> Dict[str, Any]:
        """Check agent liveness."""
        return self._request('GET', '/health')

    def is_online(self) -> bool:
        """Check if the agent is running."""
        return self.health().get('status') == 'ok'

    def status(self) -> Dict[str, Any]:
        """Agent status including detected printers."""
        return self._request('GET', '/status')

    # =========================================================================
    # Printers
    # =========================================================================

    def list_printers(self) -> List[Dict[str, Any]]:
        """List detected printers."""
        result = self._request('GET', '/printers')
        return result if isinstance(result, list) else []

    # =========================================================================
    # Printing
    # =========================================================================

    def print_test(self, printer_id: str) -> Dict[str, Any]:
        """Print a test page."""
        return self._request('POST', '/print-test', {'printerId': printer_id})

    def print_raw(self, printer_id: str, data: Union[bytes, str], type: str = 'escpos') -> Dict[str, Any]:
        """
        Print pre-formatted data.

        Args:
            printer_id: Target printer ID
            data: ESC/POS bytes (sent base64 encoded) or text
            type: 'escpos' or 'text'
        """
        body = {'printerId': printer_id, 'type': type}
        if isinstance(data, bytes):
            body['data'] = base64.b64encode(data).decode('ascii')
            body['encoding'] = 'base64'
        else:
            body['data'] = data
        return self._request('POST', '/print', body)

    def print_order(self, printer_id: str, order: Dict[str, Any]) -> Dict[str, Any]:
        """Print an order ticket (Briez order payload)."""
        return self._request('POST', '/print-order', {'printerId': printer_id, 'order': order})
