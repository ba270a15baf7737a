"""
MCP server for the shared finance backend.

Exposes accounts, budgets, goals, debts, notifications and bills through
the Model Context Protocol.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from shared_finance_mcp.config import Settings
from shared_finance_mcp.core.api_client import FinanceApi, FinanceApiClient
from shared_finance_mcp.core.exceptions import ApiError, FinanceError, SagaFailedError
from shared_finance_mcp.models.bill import Bill
from shared_finance_mcp.services.bills import BillBook
from shared_finance_mcp.tools.tools import FinanceTools, create_tool_schemas

logger = logging.getLogger(__name__)

ERROR_PREFIX = "เกิดข้อผิดพลาด: "

TOOL_NAMES = frozenset(schema["name"] for schema in create_tool_schemas())


class FinanceServer:
    """MCP server for the shared finance backend."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the MCP server.

        Args:
            settings: Backend connection settings. If None, read from the
                      environment.
            transport: Optional httpx transport for the backend client
        """
        self.settings = settings or Settings.from_env()
        self.client = FinanceApiClient(self.settings, transport=transport)
        self.api = FinanceApi(self.client)
        self.bills = BillBook(
            settle_notice_delay=self.settings.settle_notice_delay,
            on_settled=self._bill_settled,
        )
        self.tools = FinanceTools(self.api, self.bills, self.settings.user_id)
        self.server = Server("shared-finance-mcp")

        # Register handlers
        self._register_handlers()

    @staticmethod
    def _bill_settled(bill: Bill) -> None:
        logger.info("บิล %s ชำระครบทุกคนแล้ว", bill.title)

    def _register_handlers(self) -> None:
        """Register MCP protocol handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """List available tools."""
            return [
                Tool(
                    name=schema["name"],
                    description=schema["description"],
                    inputSchema=schema["inputSchema"],
                )
                for schema in create_tool_schemas()
            ]

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
            """Handle tool calls."""
            return await self.handle_call(name, arguments)

    async def handle_call(
        self, name: str, arguments: Optional[Dict[str, Any]] = None
    ) -> List[TextContent]:
        """
        Run one tool and render its result (or error) as text content.

        Never raises: every failure is reported back to the caller as text.
        """
        if name not in TOOL_NAMES:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]

        try:
            result = await getattr(self.tools, name)(**(arguments or {}))
            return [
                TextContent(
                    type="text",
                    text=json.dumps(result, indent=2, ensure_ascii=False),
                )
            ]

        except (ApiError, SagaFailedError) as e:
            logger.warning("Tool %s failed: %s", name, e)
            return [TextContent(type="text", text=f"{ERROR_PREFIX}{e}")]
        except (ValueError, TypeError) as e:
            # Validation errors and bad arguments
            return [TextContent(type="text", text=f"Error: {e}")]
        except FinanceError as e:
            return [TextContent(type="text", text=f"Error: {e}")]
        except Exception as e:
            logger.exception(f"Error executing tool {name}")
            return [
                TextContent(
                    type="text",
                    text=f"Error executing tool: {str(e)}",
                )
            ]

    async def check_backend(self) -> bool:
        """Ask the backend whether it is ready; an unreachable backend only warns."""
        try:
            await self.api.health.ready()
        except ApiError as e:
            logger.warning("Backend at %s is not ready: %s", self.settings.base_url, e)
            return False
        return True

    async def aclose(self) -> None:
        """Wait for pending bill notices and close the backend client."""
        await self.bills.wait_for_notices()
        await self.client.aclose()

    async def run(self) -> None:  # pragma: no cover
        """Run the MCP server using stdio transport."""
        await self.check_backend()
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.aclose()


async def run_server(settings: Optional[Settings] = None) -> None:  # pragma: no cover
    """
    Run the shared finance MCP server.

    Args:
        settings: Backend connection settings. If None, read from the
                  environment.
    """
    server = FinanceServer(settings)
    await server.run()
