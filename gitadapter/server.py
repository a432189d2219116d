"""MCP server exposing the git configuration adapter."""

import json
import logging
import sys
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .adapter import GitAdapter, register_adapter
from .config import Settings, load_configuration, validate_configuration
from .errors import error_handler
from .git_sync import synchronize
from .loader import register_default_loaders
from .resolver import resolve_options


def setup_logging(settings: Settings) -> None:
    """Setup logging with an [operation] prefix for records that carry one."""
    class StructuredFormatter(logging.Formatter):
        def format(self, record):
            if hasattr(record, 'operation'):
                record.msg = f"[{record.operation}] {record.msg}"
            return super().format(record)

    # MCP stdio owns stdout, so everything goes to stderr
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr
    )

    formatter = StructuredFormatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    logger = logging.getLogger('gitadapter')
    logger.setLevel(getattr(logging, settings.log_level))
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False


def register_tools(server: FastMCP, adapter: GitAdapter) -> None:
    """Register MCP tools with the server instance."""

    @server.tool()
    def adapt_config(body: str) -> dict:
        """
        Load host configuration from a git repository.

        Args:
            body: YAML or JSON with 'url' (required), 'ref', 'clone_path'
                and 'caddyfile' (entry file name)

        Returns:
            Dictionary with the adapted configuration text, warnings and the
            synchronized working tree, or an error description
        """
        try:
            config, warnings = adapter.adapt(body)
        except Exception as e:
            return error_handler.handle_adapter_error(e, {"operation": "adapt_config"}).to_dict()

        return {
            "success": True,
            "config": config.decode("utf-8", errors="replace"),
            "warnings": [w.__dict__ for w in warnings],
            "working_tree": str(adapter.last_sync.working_tree) if adapter.last_sync else None
        }

    @server.tool()
    def sync_repository(url: str, ref: Optional[str] = None, clone_path: Optional[str] = None) -> dict:
        """
        Bring the local clone of a repository up to date without loading it.

        Args:
            url: Remote repository URL
            ref: Branch, tag or revision (defaults to the configured default branch)
            clone_path: Clone root directory (defaults to the configured clone root)

        Returns:
            Sync report with the working tree, commit and what changed
        """
        body = json.dumps({"url": url, "ref": ref, "clone_path": clone_path})
        try:
            result = synchronize(resolve_options(body, adapter.settings))
        except Exception as e:
            return error_handler.handle_adapter_error(
                e, {"operation": "sync_repository", "url": url}
            ).to_dict()

        return error_handler.create_success_response("sync_repository", result.to_dict())

    init_logger = logging.getLogger('gitadapter.init')
    init_logger.info("MCP tools registered successfully")


def initialize_server() -> FastMCP:
    """Load settings, wire the adapter and build the stdio MCP server."""
    settings = load_configuration()
    setup_logging(settings)
    init_logger = logging.getLogger('gitadapter.init')

    validation_issues = validate_configuration(settings)
    for issue in validation_issues:
        if issue.startswith("ERROR:"):
            init_logger.error(issue[7:])
        elif issue.startswith("WARNING:"):
            init_logger.warning(issue[9:])

    error_count = sum(1 for issue in validation_issues if issue.startswith("ERROR:"))
    if error_count > 0:
        raise RuntimeError(f"Server startup failed due to {error_count} configuration error(s)")

    init_logger.info(f"Clone root: {settings.clone_root}, config format: {settings.config_format}")

    register_default_loaders(settings.caddy_bin, settings.loader_timeout)
    adapter = GitAdapter(settings)
    register_adapter("git", adapter, replace=True)

    server = FastMCP("Git Configuration Adapter", log_level=settings.log_level)
    register_tools(server, adapter)

    init_logger.info("Git configuration adapter MCP server initialized successfully")
    return server


def main():
    """Main entry point: run the MCP server over stdio."""
    startup_logger = logging.getLogger('gitadapter.startup')

    try:
        server = initialize_server()
        startup_logger.info("Starting server with stdio transport")
        server.run(transport="stdio")
    except KeyboardInterrupt:
        startup_logger.info("Server stopped by user (Ctrl+C)")
    except Exception as e:
        startup_logger.critical(f"Server failed to start: {e}", exc_info=True)
        sys.exit(1)
