"""
Briez Print Agent Configuration
"""

import os


def _int_list(value: str) -> list:
    return [int(part) for part in value.split(',') if part.strip()]


# =============================================================================
# Server Configuration
# =============================================================================

PORT = int(os.environ.get('BRIEZ_PRINT_PORT', 3001))
FALLBACK_PORT = int(os.environ.get('BRIEZ_PRINT_FALLBACK_PORT', 3002))
HOST = os.environ.get('BRIEZ_PRINT_HOST', '0.0.0.0')
DEBUG = os.environ.get('BRIEZ_PRINT_DEBUG', 'false').lower() == 'true'

AGENT_NAME = 'Briez Print Agent'

# =============================================================================
# Discovery
# =============================================================================

# Printer list cache lifetime (seconds)
CACHE_TTL = float(os.environ.get('BRIEZ_PRINT_CACHE_TTL', 30))

# Raw socket port of thermal network printers
PRINTER_PORT = int(os.environ.get('BRIEZ_PRINT_PRINTER_PORT', 9100))

# Subnet probing: only these host octets of the local /24 are tried
PROBE_HOSTS = _int_list(os.environ.get('BRIEZ_PRINT_PROBE_HOSTS', '100,101,102,200,201,202,150,151'))
PROBE_TIMEOUT = float(os.environ.get('BRIEZ_PRINT_PROBE_TIMEOUT', 1.0))

# Upper bound for a complete refresh (local listing + subnet probe)
DISCOVERY_TIMEOUT = float(os.environ.get('BRIEZ_PRINT_DISCOVERY_TIMEOUT', 20))

# =============================================================================
# Printing
# =============================================================================

CONNECT_TIMEOUT = float(os.environ.get('BRIEZ_PRINT_CONNECT_TIMEOUT', 5))
WRITE_TIMEOUT = float(os.environ.get('BRIEZ_PRINT_WRITE_TIMEOUT', 10))

# OS commands (wmic, lpstat, print, lp, ...)
COMMAND_TIMEOUT = float(os.environ.get('BRIEZ_PRINT_COMMAND_TIMEOUT', 10))

DISPATCH_TIMEOUT = float(os.environ.get('BRIEZ_PRINT_DISPATCH_TIMEOUT', 30))

# Receipt footer
FOOTER_LABEL = os.environ.get('BRIEZ_PRINT_FOOTER', 'BRIEZ - Sistema de Gestao')

# =============================================================================
# Logging
# =============================================================================

LOG_LEVEL = os.environ.get('BRIEZ_PRINT_LOG_LEVEL', 'INFO').upper()

# Rotating log files are written here when set
LOG_DIR = os.environ.get('BRIEZ_PRINT_LOG_DIR')
