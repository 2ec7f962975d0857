#!/usr/bin/env python3
"""
RoomChat Client - Main Entry Point

Room-based chat client for a Socket.IO chat server.

Usage:
    python main_client.py [--server-url URL] [--username NAME] [--cli]

Modes:
    (default)    Launch with PyQt6 GUI
    --cli        Launch with command-line interface
"""

import sys
import argparse

from roomchat_client.utils.config import ClientConfig
from roomchat_client.utils.logger import logger


def run_gui_client(config: ClientConfig):
    """Run the GUI client."""
    from PyQt6.QtWidgets import QApplication
    from roomchat_client.ui.client_gui import ClientMainWindow

    app = QApplication(sys.argv)
    app.setApplicationName("RoomChat")

    window = ClientMainWindow(config)
    window.show()
    window.connect_to_server()

    return app.exec()


def run_cli_client(config: ClientConfig):
    """Run the CLI client."""
    import asyncio
    from roomchat_client.main_client import RoomChatClient

    client = RoomChatClient(config)
    try:
        asyncio.run(client.interactive_mode())
    except KeyboardInterrupt:
        print("\n[INFO] Interrupted by user")
    except Exception as e:
        logger.log_error("client", e)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='RoomChat Client')
    parser.add_argument('--server-url', type=str, default=None,
                        help='Chat server URL (default: $SERVER_URL or http://localhost:3000)')
    parser.add_argument('--username', type=str, default=None,
                        help='Username to try first (default: will be asked)')
    parser.add_argument('--cli', action='store_true',
                        help='Run in command-line mode (GUI is default)')
    parser.add_argument('--log-level', type=str, default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Log level (default: $ROOMCHAT_LOG_LEVEL or INFO)')
    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    config = ClientConfig.from_env(
        server_url=args.server_url,
        username=args.username,
        log_level=args.log_level
    )
    logger.set_level(config.log_level)

    if args.cli:
        return run_cli_client(config)
    return run_gui_client(config)


if __name__ == "__main__":
    sys.exit(main())
