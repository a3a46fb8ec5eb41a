"""
Briez Print Agent
=================

Local print bridge between the Briez web app and the restaurant's
receipt printers.

Finds:
- Printers installed on this computer (Windows spooler / CUPS)
- Thermal network printers answering on port 9100 in the local subnet

Prints ESC/POS over a raw TCP socket or through the OS spooler.

Usage:
    python -m briez_print_agent

API Endpoints:
    GET  /status      - Agent status and printers
    GET  /printers    - List printers
    POST /print-test  - Print a test page
    POST /print       - Print raw ESC/POS data
    POST /print-order - Print an order ticket
    GET  /health      - Liveness
"""

__version__ = '1.0.0'
__author__ = 'Briez'
