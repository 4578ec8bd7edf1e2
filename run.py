#!/usr/bin/env python3
"""
Retail Banking Entry Point

Starts the FastAPI server with the transfer core, using RETAIL_BANKING_*
environment settings.
"""

import sys

from retail_banking.api import run_server
from retail_banking.api.deps import get_banking_system, issue_token
from retail_banking.config import get_config
from retail_banking.logging_config import setup_logging
from retail_banking.seed import DEMO_PRINCIPALS, seed_demo_data


if __name__ == "__main__":
    config = get_config()
    logger = setup_logging(config.log_level, log_file=config.log_file)

    if config.seed_demo_data:
        seed_demo_data(get_banking_system())
        for principal in DEMO_PRINCIPALS:
            print(f"Bearer token for {principal}: {issue_token(principal, config)}")

    print(f"Starting Retail Banking API on http://{config.api_host}:{config.api_port}")
    print(f"Documentation at: http://{config.api_host}:{config.api_port}/docs")

    try:
        run_server(host=config.api_host, port=config.api_port)
    except KeyboardInterrupt:
        print("\nShutting down...")
    except Exception as e:
        logger.exception("Error starting server")
        print(f"Error starting server: {e}")
        sys.exit(1)
