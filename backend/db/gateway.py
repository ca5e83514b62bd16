"""
Store Gateway — Actor-scoped reads and writes for the command console.

Every statement is filtered by ``user_id == actor_id``; rows owned by a
different actor are invisible (lookups return None, updates touch nothing).

Writes commit one row at a time. Stock changes use the database's own
conditional UPDATE so concurrent sales are serialized by the store rather
than by a read-modify-write in Python.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import date

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import UpstreamUnavailable
from db.models import CSInquiry, DailyLog, Expense, Order, Product

logger = structlog.get_logger()


class StoreGateway:
    """Narrow data access for one authenticated actor."""

    def __init__(self, db: AsyncSession, actor_id: uuid.UUID):
        self.db = db
        self.actor_id = actor_id

    @asynccontextmanager
    async def _write(self, operation: str):
        try:
            yield
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(
                "gateway.write_failed",
                operation=operation,
                actor_id=str(self.actor_id),
                error=str(exc),
            )
            raise UpstreamUnavailable(f"Data store write failed ({operation})") from exc

    # ── Products ───────────────────────────────────────────────────────

    async def get_product(self, product_id: uuid.UUID) -> Product | None:
        result = await self.db.execute(
            select(Product)
            .where(Product.id == product_id, Product.user_id == self.actor_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_product(self, product_name: str, unique_id: str | None = None) -> Product | None:
        """
        Resolve a product the way a maker refers to it.

        An exact ``unique_id`` match wins; otherwise (or on a miss) fall back
        to a case-insensitive exact match on the product name.
        """
        if unique_id and unique_id.strip():
            result = await self.db.execute(
                select(Product)
                .where(Product.user_id == self.actor_id, Product.unique_id == unique_id.strip())
                .order_by(Product.created_at)
                .limit(1)
                .execution_options(populate_existing=True)
            )
            product = result.scalar_one_or_none()
            if product is not None:
                return product

        result = await self.db.execute(
            select(Product)
            .where(
                Product.user_id == self.actor_id,
                func.lower(Product.product_name) == product_name.strip().lower(),
            )
            .order_by(Product.created_at)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def search_products(self, fragment: str) -> list[Product]:
        result = await self.db.execute(
            select(Product)
            .where(
                Product.user_id == self.actor_id,
                Product.product_name.icontains(fragment, autoescape=True),
            )
            .order_by(Product.product_name)
        )
        return list(result.scalars().all())

    async def lowest_stock_products(self, limit: int = 5) -> list[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.user_id == self.actor_id)
            .order_by(Product.stock_count.asc(), Product.product_name)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_products(self) -> list[Product]:
        result = await self.db.execute(
            select(Product).where(Product.user_id == self.actor_id).order_by(Product.created_at.desc())
        )
        return list(result.scalars().all())

    async def insert_product(self, product_name: str, unique_id: str | None, stock_count: int) -> Product:
        product = Product(
            user_id=self.actor_id,
            product_name=product_name,
            unique_id=unique_id or None,
            stock_count=stock_count,
            sold_count=0,
        )
        async with self._write("insert_product"):
            self.db.add(product)
        return product

    async def decrement_stock(self, product_id: uuid.UUID, quantity: int) -> Product | None:
        """
        Atomically move ``quantity`` units from stock to sold.

        Returns the refreshed product, or None when the guard
        ``stock_count >= quantity`` did not hold at update time.
        """
        async with self._write("decrement_stock"):
            result = await self.db.execute(
                update(Product)
                .where(
                    Product.id == product_id,
                    Product.user_id == self.actor_id,
                    Product.stock_count >= quantity,
                )
                .values(
                    stock_count=Product.stock_count - quantity,
                    sold_count=Product.sold_count + quantity,
                )
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:
            return None
        return await self.get_product(product_id)

    async def increment_stock(self, product_id: uuid.UUID, quantity: int) -> Product | None:
        async with self._write("increment_stock"):
            result = await self.db.execute(
                update(Product)
                .where(Product.id == product_id, Product.user_id == self.actor_id)
                .values(stock_count=Product.stock_count + quantity)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:
            return None
        return await self.get_product(product_id)

    # ── Orders ─────────────────────────────────────────────────────────

    async def insert_order(
        self,
        product_id: uuid.UUID,
        quantity: int,
        customer_name: str,
        channel: str,
    ) -> Order:
        order = Order(
            user_id=self.actor_id,
            product_id=product_id,
            quantity=quantity,
            customer_name=customer_name,
            channel=channel,
            total_price=0,
            status="paid",
        )
        async with self._write("insert_order"):
            self.db.add(order)
        return order

    async def list_orders(self, limit: int = 100) -> list[tuple[Order, str]]:
        """Newest orders first, each paired with its product name."""
        result = await self.db.execute(
            select(Order, Product.product_name)
            .join(Product, Product.id == Order.product_id)
            .where(Order.user_id == self.actor_id, Product.user_id == self.actor_id)
            .order_by(Order.created_at.desc())
            .limit(limit)
        )
        return [(row[0], row[1]) for row in result.all()]

    # ── Expenses ───────────────────────────────────────────────────────

    async def insert_expense(
        self,
        description: str,
        amount: int,
        category: str,
        on_date: date | None = None,
    ) -> Expense:
        expense = Expense(
            user_id=self.actor_id,
            date=on_date or date.today(),
            description=description,
            amount=amount,
            category=category,
        )
        async with self._write("insert_expense"):
            self.db.add(expense)
        return expense

    async def list_expenses(self, limit: int = 100) -> list[Expense]:
        result = await self.db.execute(
            select(Expense)
            .where(Expense.user_id == self.actor_id)
            .order_by(Expense.date.desc(), Expense.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── CS Inquiries ───────────────────────────────────────────────────

    async def insert_cs_inquiry(
        self,
        customer_name: str,
        content: str,
        product_name: str | None = None,
        status: str = "open",
        ai_reply: str | None = None,
    ) -> CSInquiry:
        inquiry = CSInquiry(
            user_id=self.actor_id,
            customer_name=customer_name,
            content=content,
            product_name=product_name,
            status=status,
            ai_reply=ai_reply,
        )
        async with self._write("insert_cs_inquiry"):
            self.db.add(inquiry)
        return inquiry

    async def count_cs_by_status(self, statuses: tuple[str, ...]) -> dict[str, int]:
        result = await self.db.execute(
            select(CSInquiry.status, func.count())
            .where(CSInquiry.user_id == self.actor_id, CSInquiry.status.in_(statuses))
            .group_by(CSInquiry.status)
        )
        counts = {status: 0 for status in statuses}
        for status, count in result.all():
            counts[status] = count
        return counts

    async def latest_cs_inquiry(self, statuses: tuple[str, ...]) -> CSInquiry | None:
        result = await self.db.execute(
            select(CSInquiry)
            .where(CSInquiry.user_id == self.actor_id, CSInquiry.status.in_(statuses))
            .order_by(CSInquiry.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_cs_inquiries(self, status: str | None = None, limit: int = 100) -> list[CSInquiry]:
        query = select(CSInquiry).where(CSInquiry.user_id == self.actor_id)
        if status:
            query = query.where(CSInquiry.status == status)
        result = await self.db.execute(query.order_by(CSInquiry.created_at.desc()).limit(limit))
        return list(result.scalars().all())

    async def set_cs_status(self, inquiry_id: uuid.UUID, status: str) -> CSInquiry | None:
        """Move an inquiry to any status. Returns None if the actor does not own it."""
        result = await self.db.execute(
            select(CSInquiry).where(CSInquiry.id == inquiry_id, CSInquiry.user_id == self.actor_id)
        )
        inquiry = result.scalar_one_or_none()
        if inquiry is None:
            return None
        async with self._write("set_cs_status"):
            inquiry.status = status
        await self.db.refresh(inquiry)
        return inquiry

    # ── Daily Logs ─────────────────────────────────────────────────────

    async def insert_log(self, content: str, ai_response: str) -> DailyLog:
        entry = DailyLog(user_id=self.actor_id, content=content, ai_response=ai_response)
        async with self._write("insert_log"):
            self.db.add(entry)
        return entry

    async def recent_logs(self, limit: int = 20) -> list[DailyLog]:
        result = await self.db.execute(
            select(DailyLog)
            .where(DailyLog.user_id == self.actor_id)
            .order_by(DailyLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
