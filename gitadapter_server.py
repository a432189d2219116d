#!/usr/bin/env python3
"""
Git Configuration Adapter MCP Server

Keeps a local clone of a configuration repository up to date and serves the
adapted configuration over the Model Context Protocol (stdio).
"""

from gitadapter.server import main


if __name__ == "__main__":
    main()
