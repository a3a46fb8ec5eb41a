#!/usr/bin/env python
"""
Briez Print Agent - Standalone Entry Point

Run directly:
    python main.py

Or with environment variables:
    BRIEZ_PRINT_PORT=3005 BRIEZ_PRINT_LOG_LEVEL=DEBUG python main.py
"""

from briez_print_agent.app import main


if __name__ == '__main__':
    main()
