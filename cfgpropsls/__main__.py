"""
Main entry point for the configuration properties language server.

This file is executed when running: python -m cfgpropsls

The server communicates with editors via stdin/stdout using JSON-RPC,
so logging goes to stderr.
"""
import logging
import os
import sys

from cfgpropsls.lsp.server import create_server


def configure_logging() -> None:
    """Log to stderr; DEBUG env var or CFGPROPSLS_LOG_LEVEL select the level."""
    level_name = "DEBUG" if os.getenv("DEBUG") else os.getenv("CFGPROPSLS_LOG_LEVEL", "WARNING")
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main():
    """Start the language server on stdin/stdout."""
    configure_logging()
    server = create_server()

    # Start the server - it will listen on stdin/stdout for LSP messages
    # from the editor client
    server.start_io()


if __name__ == "__main__":
    main()
