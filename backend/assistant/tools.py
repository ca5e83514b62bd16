"""
Tool Registry — The fixed catalog of operations the command console may run.

Each tool is a tagged variant: a name, a pydantic argument model and an
async handler. The model's JSON arguments are parsed and validated at the
registry boundary; any problem (bad JSON, missing or out-of-range fields,
unknown tool name) becomes an in-band error result so the model can
correct itself on the next turn.

Tools:
  - manage_inventory: register / sell / restock a product
  - log_expense:      record spending against today's date
  - log_cs_inquiry:   open a customer-service ticket
  - check_inventory:  read stock (lowest five, or by name)
  - check_cs_status:  read CS counts and the latest ticket

Every result is a plain string with a leading outcome glyph so the UI can
render it directly and the model can read it back.
"""

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from assistant.llm_client import ToolCall
from core.errors import UpstreamUnavailable
from db.gateway import StoreGateway
from db.models import ACTIVE_CS_STATUSES, CS_STATUSES, SALES_CHANNELS

logger = structlog.get_logger()

LOW_STOCK_LIMIT = 5
DEFAULT_SALE_CUSTOMER = "Unknown Customer"
DEFAULT_CS_CUSTOMER = "Unknown"
_CHANNELS_BY_KEY = {channel.lower(): channel for channel in SALES_CHANNELS}


# ── Outcomes ──────────────────────────────────────────────────────────────


class ToolOutcome(str, Enum):
    """Outcome category of a tool run. Drives the leading glyph."""

    SUCCESS = "success"
    SALE = "sale"
    TICKET = "ticket"
    INFO = "info"
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    CONFLICT = "conflict"
    INVALID = "invalid"


OUTCOME_GLYPHS: dict[ToolOutcome, str] = {
    ToolOutcome.SUCCESS: "✅",
    ToolOutcome.SALE: "📉",
    ToolOutcome.TICKET: "📝",
    ToolOutcome.INFO: "📋",
    ToolOutcome.NOT_FOUND: "❌",
    ToolOutcome.INSUFFICIENT_STOCK: "❌",
    ToolOutcome.CONFLICT: "❌",
    ToolOutcome.INVALID: "❌",
}


@dataclass(frozen=True)
class SellOutcome:
    """Two-phase result of a sale: the stock move and the order record commit separately."""

    stock_updated: bool
    order_recorded: bool


@dataclass
class ToolResult:
    outcome: ToolOutcome
    message: str
    sell: SellOutcome | None = None

    @property
    def text(self) -> str:
        return f"{OUTCOME_GLYPHS[self.outcome]} {self.message}"

    @property
    def is_error(self) -> bool:
        return self.outcome in (
            ToolOutcome.NOT_FOUND,
            ToolOutcome.INSUFFICIENT_STOCK,
            ToolOutcome.CONFLICT,
            ToolOutcome.INVALID,
        )


# ── Argument variants ─────────────────────────────────────────────────────


def _blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ToolArgs(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class ManageInventoryArgs(ToolArgs):
    action: Literal["register", "sell", "update"] = Field(
        ...,
        description="register = new item; sell = sales deduction; update = add stock (restock)",
    )
    product_name: str = Field(..., min_length=1, description="Product name (e.g. Blue Mug, Ceramic Bowl)")
    unique_id: str | None = Field(
        None,
        description="Optional stable ID/SKU for the product. Preferred when the user provides one.",
    )
    quantity: int = Field(
        ...,
        gt=0,
        description="Positive integer (register: initial stock; sell: units sold; update: units to add)",
    )
    customer_name: str = Field(
        DEFAULT_SALE_CUSTOMER,
        description="Optional. For sell: customer name from context.",
    )
    channel: Literal["Instagram", "Naver", "Offline"] = Field(
        "Offline",
        description="Optional. For sell: sales channel if mentioned.",
    )

    @field_validator("action", mode="before")
    @classmethod
    def _normalize_action(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("unique_id", mode="before")
    @classmethod
    def _blank_unique_id(cls, value):
        return _blank_to_none(value)

    @field_validator("customer_name", mode="before")
    @classmethod
    def _default_customer(cls, value):
        return _blank_to_none(value) or DEFAULT_SALE_CUSTOMER

    @field_validator("channel", mode="before")
    @classmethod
    def _default_channel(cls, value):
        value = _blank_to_none(value)
        if value is None:
            return "Offline"
        if isinstance(value, str):
            return _CHANNELS_BY_KEY.get(value.strip().lower(), value)
        return value


class LogExpenseArgs(ToolArgs):
    description: str = Field(..., min_length=1, description="What the expense was for")
    amount: int = Field(..., ge=0, description="Amount in KRW (e.g. 50000)")
    category: Literal["material", "shipping", "marketing", "etc"] = Field(
        "etc", description="Expense category"
    )

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value):
        value = _blank_to_none(value)
        return value.strip().lower() if isinstance(value, str) else "etc"


class LogCSInquiryArgs(ToolArgs):
    customer_name: str = Field(
        DEFAULT_CS_CUSTOMER, description="Customer name from context (e.g. Kim, the buyer)"
    )
    content: str = Field(..., min_length=1, description="Core message (e.g. Complaining about late delivery)")
    product_name: str | None = Field(None, description="Product mentioned, if any")
    status: Literal["open", "resolved"] = Field(
        "open",
        description="Default 'open'. Use 'resolved' only if the user says they already replied.",
    )
    ai_reply: str | None = Field(None, description="Optional short suggested reply to the customer")

    @field_validator("customer_name", mode="before")
    @classmethod
    def _default_customer(cls, value):
        return _blank_to_none(value) or DEFAULT_CS_CUSTOMER

    @field_validator("product_name", "ai_reply", mode="before")
    @classmethod
    def _blank_optional(cls, value):
        return _blank_to_none(value)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value):
        value = _blank_to_none(value)
        return value.strip().lower() if isinstance(value, str) else "open"


class CheckInventoryArgs(ToolArgs):
    product_name: str | None = Field(
        None,
        description="Product name to look up (partial match). Use 'all' or leave empty for the top 5 low-stock items.",
    )


class CheckCSStatusArgs(ToolArgs):
    status_filter: str = Field(
        "active",
        description=(
            "Use 'active' for all unresolved (Open + In Progress + Waiting). Use 'open', 'in_progress', "
            "'waiting', 'resolved', or 'closed' for a single status. Default: 'active'."
        ),
    )

    @field_validator("status_filter", mode="before")
    @classmethod
    def _default_filter(cls, value):
        value = _blank_to_none(value)
        return value.strip().lower() if isinstance(value, str) else "active"


# ── Registry ──────────────────────────────────────────────────────────────

ToolHandler = Callable[[StoreGateway, Any], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args_model: type[ToolArgs]
    handler: ToolHandler

    def definition(self) -> dict[str, Any]:
        """Function-calling schema offered to the text-generation backend."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.args_model.model_json_schema(),
            },
        }


_TOOL_REGISTRY: dict[str, ToolSpec] = {}


def register_tool(name: str, description: str, args_model: type[ToolArgs]):
    """Decorator: register a handler under a tool name with its argument model."""

    def decorator(handler: ToolHandler) -> ToolHandler:
        _TOOL_REGISTRY[name] = ToolSpec(name=name, description=description, args_model=args_model, handler=handler)
        return handler

    return decorator


def get_tool(name: str) -> ToolSpec | None:
    return _TOOL_REGISTRY.get(name)


def tool_definitions() -> list[dict[str, Any]]:
    return [spec.definition() for spec in _TOOL_REGISTRY.values()]


class ToolArgumentError(Exception):
    """Raised when a tool call cannot be turned into a validated argument variant."""


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "arguments"
        parts.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)


def parse_tool_call(call: ToolCall) -> tuple[ToolSpec, ToolArgs]:
    """Resolve the tool and validate its arguments, or raise ToolArgumentError."""
    spec = get_tool(call.name)
    if spec is None:
        raise ToolArgumentError(f"Unknown tool '{call.name}'. Available tools: {', '.join(_TOOL_REGISTRY)}.")

    try:
        raw = json.loads(call.arguments or "{}")
    except json.JSONDecodeError as e:
        raise ToolArgumentError(f"Arguments for {call.name} are not valid JSON ({e.msg}).") from e
    if not isinstance(raw, dict):
        raise ToolArgumentError(f"Arguments for {call.name} must be a JSON object.")

    try:
        args = spec.args_model.model_validate(raw)
    except ValidationError as e:
        raise ToolArgumentError(f"Invalid arguments for {call.name}: {_format_validation_error(e)}.") from e
    return spec, args


async def execute_tool_call(gateway: StoreGateway, call: ToolCall) -> ToolResult:
    """
    Validate and run one tool call.

    Argument problems come back as an INVALID result. Data-store failures
    (UpstreamUnavailable) propagate and fail the whole command.
    """
    try:
        spec, args = parse_tool_call(call)
    except ToolArgumentError as e:
        logger.info("tool.rejected", tool=call.name, reason=str(e))
        return ToolResult(ToolOutcome.INVALID, f"Error: {e}")

    result = await spec.handler(gateway, args)
    logger.info(
        "tool.executed",
        tool=spec.name,
        outcome=result.outcome.value,
        actor_id=str(gateway.actor_id),
    )
    return result


# ── Handlers ──────────────────────────────────────────────────────────────


@register_tool(
    "manage_inventory",
    "Register a new product, record a sale (deduct stock), or add stock (restock/correction).",
    ManageInventoryArgs,
)
async def manage_inventory(gateway: StoreGateway, args: ManageInventoryArgs) -> ToolResult:
    existing = await gateway.find_product(args.product_name, args.unique_id)

    if args.action == "register":
        if existing is not None:
            return ToolResult(
                ToolOutcome.CONFLICT,
                f"Error: Product already exists ({existing.product_name}). Did you mean to update stock?",
            )
        product = await gateway.insert_product(args.product_name, args.unique_id, args.quantity)
        id_display = product.unique_id or str(product.id)
        return ToolResult(
            ToolOutcome.SUCCESS,
            f"Registered new product: {product.product_name} (ID: {id_display}) with {args.quantity} ea.",
        )

    if existing is None:
        return ToolResult(ToolOutcome.NOT_FOUND, "Error: Product not found. Please register it first.")

    if args.action == "sell":
        return await _sell(gateway, existing, args)

    updated = await gateway.increment_stock(existing.id, args.quantity)
    if updated is None:
        return ToolResult(ToolOutcome.NOT_FOUND, "Error: Product not found. Please register it first.")
    return ToolResult(
        ToolOutcome.SUCCESS,
        f"Restocked {updated.product_name} +{args.quantity}. "
        f"Stock: {updated.stock_count - args.quantity} -> {updated.stock_count}.",
    )


def _insufficient_stock(product_name: str, stock_count: int, quantity: int) -> ToolResult:
    return ToolResult(
        ToolOutcome.INSUFFICIENT_STOCK,
        f"Error: Insufficient stock. {product_name} has {stock_count} (need {quantity}).",
        sell=SellOutcome(stock_updated=False, order_recorded=False),
    )


async def _sell(gateway: StoreGateway, product, args: ManageInventoryArgs) -> ToolResult:
    if product.stock_count < args.quantity:
        return _insufficient_stock(product.product_name, product.stock_count, args.quantity)

    updated = await gateway.decrement_stock(product.id, args.quantity)
    if updated is None:
        # Another sale won the row between our read and the guarded update.
        current = await gateway.get_product(product.id)
        stock_now = current.stock_count if current is not None else 0
        return _insufficient_stock(product.product_name, stock_now, args.quantity)

    before = updated.stock_count + args.quantity
    message = (
        f"Sold {args.quantity} {updated.product_name} to {args.customer_name} via {args.channel}. "
        f"Stock: {before} -> {updated.stock_count}. Total Sold: {updated.sold_count}."
    )

    try:
        await gateway.insert_order(updated.id, args.quantity, args.customer_name, args.channel)
        order_recorded = True
    except UpstreamUnavailable as e:
        # Stock already moved and stays moved; the missing order row is reported, not rolled back.
        logger.warning(
            "sell.order_record_failed",
            product_id=str(updated.id),
            quantity=args.quantity,
            error=e.message,
        )
        order_recorded = False
        message += " (Order record failed: stock was deducted but no order row was saved.)"

    return ToolResult(
        ToolOutcome.SALE,
        message,
        sell=SellOutcome(stock_updated=True, order_recorded=order_recorded),
    )


@register_tool(
    "log_expense",
    "Record an expense. Use when the user mentions spending money.",
    LogExpenseArgs,
)
async def log_expense(gateway: StoreGateway, args: LogExpenseArgs) -> ToolResult:
    await gateway.insert_expense(args.description, args.amount, args.category)
    return ToolResult(
        ToolOutcome.SUCCESS,
        f"Recorded expense: {args.description} ({args.amount:,} KRW, {args.category}).",
    )


@register_tool(
    "log_cs_inquiry",
    "Record a customer service inquiry (question, complaint, refund request). "
    "Use when the user mentions a customer issue.",
    LogCSInquiryArgs,
)
async def log_cs_inquiry(gateway: StoreGateway, args: LogCSInquiryArgs) -> ToolResult:
    await gateway.insert_cs_inquiry(
        customer_name=args.customer_name,
        content=args.content,
        product_name=args.product_name,
        status=args.status,
        ai_reply=args.ai_reply,
    )
    return ToolResult(
        ToolOutcome.TICKET,
        f"CS Ticket Created: {args.customer_name} - {args.status}. Check the CS inbox.",
    )


@register_tool(
    "check_inventory",
    "Read stock levels. Use when the user asks how much stock, what's in stock, or which items are low.",
    CheckInventoryArgs,
)
async def check_inventory(gateway: StoreGateway, args: CheckInventoryArgs) -> ToolResult:
    name = args.product_name or ""
    if not name or name.lower() == "all":
        products = await gateway.lowest_stock_products(LOW_STOCK_LIMIT)
        if not products:
            return ToolResult(ToolOutcome.INFO, "No products in inventory.")
        lines = " ".join(f"{p.product_name}: {p.stock_count} ea." for p in products)
        return ToolResult(ToolOutcome.INFO, f"Low stock (top {LOW_STOCK_LIMIT}): {lines}")

    products = await gateway.search_products(name)
    if not products:
        return ToolResult(ToolOutcome.INFO, f"Product not found: {name}.")
    lines = " ".join(f"Found {p.product_name}: {p.stock_count} ea." for p in products)
    return ToolResult(ToolOutcome.INFO, lines)


def _status_label(status: str) -> str:
    return status.replace("_", " ").title()


@register_tool(
    "check_cs_status",
    "Read CS inquiry counts and the latest one. Use when the user asks about pending/active/unresolved CS, "
    "customer inquiries, or how many tickets. Use status_filter='active' for unfinished/ongoing/remaining "
    "(counts Open + In Progress + Waiting). Use a specific status only when the user asks for that status.",
    CheckCSStatusArgs,
)
async def check_cs_status(gateway: StoreGateway, args: CheckCSStatusArgs) -> ToolResult:
    status_filter = args.status_filter

    if status_filter == "active":
        counts = await gateway.count_cs_by_status(ACTIVE_CS_STATUSES)
        total = sum(counts.values())
        breakdown = ", ".join(f"{counts[s]} {_status_label(s)}" for s in ACTIVE_CS_STATUSES)
        summary = f"Found {total} active inquiries: {breakdown}."
        if total == 0:
            return ToolResult(ToolOutcome.INFO, summary)
        latest = await gateway.latest_cs_inquiry(ACTIVE_CS_STATUSES)
        if latest is not None:
            summary += f" Latest: {latest.customer_name} - {latest.content}"
        return ToolResult(ToolOutcome.INFO, summary)

    if status_filter in CS_STATUSES:
        counts = await gateway.count_cs_by_status((status_filter,))
        total = counts[status_filter]
        summary = f"You have {total} {status_filter} inquiries."
        if total == 0:
            return ToolResult(ToolOutcome.INFO, summary)
        latest = await gateway.latest_cs_inquiry((status_filter,))
        if latest is not None:
            summary += f" Latest: {latest.customer_name} - {latest.content}"
        return ToolResult(ToolOutcome.INFO, summary)

    return ToolResult(
        ToolOutcome.INFO,
        f"Use status_filter 'active' or one of: {', '.join(CS_STATUSES)}.",
    )
