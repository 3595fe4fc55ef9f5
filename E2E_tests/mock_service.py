from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional
import uuid

from postgrest.exceptions import APIError


class AbstractMockService(ABC):
    """
    Abstract base class for mock services used to test the storefront without a hosted backend. These services
    expose the same calls as the real client so they can be handed to the code under test.

    """
    @abstractmethod
    def __init__(self):
        """
        Initialize the mock service.
        """
        pass


class FakeResponse:
    def __init__(self, data, count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    """Subset of the PostgREST query builder backed by a list of dicts."""

    def __init__(self, service: "FakeSupabaseClient", table_name: str):
        self.service = service
        self.table_name = table_name
        self.action = "select"
        self.columns = "*"
        self.payload = None
        self.filters: List[Callable[[dict], bool]] = []
        self.ordering: List[tuple] = []
        self.row_limit: Optional[int] = None
        self.count_mode: Optional[str] = None
        self.single = False

    @property
    def rows(self) -> List[dict]:
        return self.service.tables.setdefault(self.table_name, [])

    # actions

    def select(self, columns: str = "*", count: Optional[str] = None):
        self.action = "select"
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, data):
        self.action = "insert"
        self.payload = data
        return self

    def update(self, data: dict):
        self.action = "update"
        self.payload = data
        return self

    def delete(self):
        self.action = "delete"
        return self

    # filters

    def eq(self, column: str, value):
        self.filters.append(lambda row: _same(row.get(column), value))
        return self

    def neq(self, column: str, value):
        self.filters.append(lambda row: not _same(row.get(column), value))
        return self

    def in_(self, column: str, values):
        self.filters.append(lambda row: any(_same(row.get(column), v) for v in values))
        return self

    def is_(self, column: str, value):
        self.filters.append(lambda row: row.get(column) is None if value in (None, "null") else _same(row.get(column), value))
        return self

    def order(self, column: str, desc: bool = False):
        self.ordering.append((column, desc))
        return self

    def limit(self, size: int):
        self.row_limit = size
        return self

    def maybe_single(self):
        self.single = True
        return self

    # execution

    def _matching(self) -> List[dict]:
        return [row for row in self.rows if all(check(row) for check in self.filters)]

    def _project(self, row: dict) -> dict:
        if self.columns.strip() == "*":
            return dict(row)
        names = [name.strip() for name in self.columns.split(",")]
        return {name: row.get(name) for name in names}

    def execute(self):
        self.service.calls.append((self.table_name, self.action))

        if self.table_name in self.service.failing_tables:
            raise APIError({"message": f"{self.table_name} is unavailable", "code": "500"})

        if self.action == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self.service.add_row(self.table_name, item) for item in items]
            return FakeResponse([dict(row) for row in created])

        if self.action == "update":
            hook = self.service.before_update.pop(self.table_name, None)
            if hook is not None:
                hook(self.service)
            updated = []
            for row in self._matching():
                row.update(self.payload)
                updated.append(dict(row))
            return FakeResponse(updated)

        if self.action == "delete":
            removed = self._matching()
            self.service.tables[self.table_name] = [row for row in self.rows if row not in removed]
            return FakeResponse([dict(row) for row in removed])

        rows = self._matching()
        for column, desc in reversed(self.ordering):
            rows.sort(key=lambda row: (row.get(column) is None, str(row.get(column))), reverse=desc)
        total = len(rows)
        if self.row_limit is not None:
            rows = rows[:self.row_limit]
        data = [self._project(row) for row in rows]

        if self.single:
            if not data:
                return None
            return FakeResponse(data[0])

        return FakeResponse(data, count=total if self.count_mode else None)


def _same(stored, value) -> bool:
    if isinstance(stored, bool) or isinstance(value, bool):
        return str(stored).lower() == str(value).lower()
    return str(stored) == str(value)


class FakeRpc:
    def __init__(self, service: "FakeSupabaseClient", name: str, params: dict):
        self.service = service
        self.name = name
        self.params = params

    def execute(self):
        if self.name in self.service.failing_rpcs:
            raise APIError({"message": f"function {self.name} failed", "code": "42883"})
        if self.name == "has_role":
            data = any(
                row.get("user_id") == self.params["_user_id"] and row.get("role") == self.params["_role"]
                for row in self.service.tables.get("user_roles", [])
            )
            return FakeResponse(data)
        raise APIError({"message": f"function {self.name} does not exist", "code": "42883"})


class FakeAuthAdmin:
    def __init__(self, auth: "FakeAuth"):
        self.auth = auth

    def sign_out(self, jwt: str, scope: str = "global"):
        self.auth.sessions.pop(jwt, None)


class FakeAuth:
    """Users keyed by email, sessions keyed by access token."""

    def __init__(self):
        self.users: Dict[str, dict] = {}
        self.sessions: Dict[str, SimpleNamespace] = {}
        self.signed_out = False
        self.admin = FakeAuthAdmin(self)

    def add_user(self, email: str, password: str) -> SimpleNamespace:
        user = SimpleNamespace(id=str(uuid.uuid4()), email=email)
        self.users[email] = {"password": password, "user": user}
        return user

    def issue_session(self, user: SimpleNamespace) -> SimpleNamespace:
        session = SimpleNamespace(access_token=f"access-{uuid.uuid4().hex}", refresh_token=f"refresh-{uuid.uuid4().hex}")
        self.sessions[session.access_token] = user
        return session

    def get_user(self, jwt: str):
        user = self.sessions.get(jwt)
        if user is None:
            return None
        return SimpleNamespace(user=user)

    def sign_in_with_password(self, credentials: dict):
        entry = self.users.get(credentials["email"])
        if entry is None or entry["password"] != credentials["password"]:
            return SimpleNamespace(user=None, session=None)
        return SimpleNamespace(user=entry["user"], session=self.issue_session(entry["user"]))

    def sign_up(self, credentials: dict):
        user = self.add_user(credentials["email"], credentials["password"])
        return SimpleNamespace(user=user, session=self.issue_session(user))

    def sign_out(self):
        self.signed_out = True


class FakeChannel:
    def __init__(self, service: "FakeSupabaseClient", name: str):
        self.service = service
        self.name = name
        self.bindings: List[dict] = []
        self.subscribed = False
        self.removed = False

    def on_postgres_changes(self, event: str, callback: Callable, table: str = "*",
                            schema: str = "public", filter: Optional[str] = None):
        self.bindings.append({"event": event, "table": table, "filter": filter, "callback": callback})
        return self

    async def subscribe(self, callback: Optional[Callable] = None):
        self.subscribed = True
        if callback is not None:
            callback("SUBSCRIBED", None)
        for event, table, record in self.service.queued_changes:
            self.deliver(event, table, record)
        return self

    def deliver(self, event: str, table: str, record: dict) -> None:
        for binding in self.bindings:
            if binding["event"] not in (event, "*") or binding["table"] not in (table, "*"):
                continue
            if binding["filter"]:
                column, _, value = binding["filter"].partition("=eq.")
                if str(record.get(column)) != value:
                    continue
            binding["callback"]({"data": {"type": event, "table": table, "schema": "public", "record": record}})


class FakeSupabaseClient(AbstractMockService):
    """
    In-memory stand-in for the supabase Client: tables, rpc, auth and realtime channels.
    """

    def __init__(self):
        super().__init__()
        self.tables: Dict[str, List[dict]] = {}
        self.calls: List[tuple] = []
        self.failing_tables: set = set()
        self.failing_rpcs: set = set()
        self.before_update: Dict[str, Callable[["FakeSupabaseClient"], None]] = {}
        self.queued_changes: List[tuple] = []
        self.channels: List[FakeChannel] = []
        self.auth = FakeAuth()
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    from_ = table

    def rpc(self, name: str, params: dict) -> FakeRpc:
        return FakeRpc(self, name, params)

    def channel(self, name: str) -> FakeChannel:
        channel = FakeChannel(self, name)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel: FakeChannel) -> None:
        channel.removed = True

    # helpers for tests

    def add_row(self, table_name: str, data: dict) -> dict:
        self._clock += timedelta(seconds=1)
        row = {"id": str(uuid.uuid4()), "created_at": self._clock.isoformat(), **data}
        self.tables.setdefault(table_name, []).append(row)
        return row

    def row(self, table_name: str, row_id: str) -> Optional[dict]:
        return next((row for row in self.tables.get(table_name, []) if row["id"] == row_id), None)

    def queue_change(self, event: str, table: str, record: dict) -> None:
        """Change delivered to every matching channel when it subscribes."""
        self.queued_changes.append((event, table, record))

    def make_admin(self, email: str = "admin@example.com", password: str = "secret") -> str:
        """Create an admin user with a live session and return its access token."""
        user = self.auth.add_user(email, password)
        self.add_row("user_roles", {"user_id": user.id, "role": "admin"})
        return self.auth.issue_session(user).access_token


def seed_catalog(fake: FakeSupabaseClient) -> dict:
    """A product with one option of every type, an instant delivery product, a token and three stock items."""
    product = fake.add_row("products", {"name": "Streaming", "price": "0.00", "instant_delivery": False})
    instant = fake.add_row("products", {"name": "Activation keys", "price": "0.00", "instant_delivery": True})
    options = {
        "email_password": fake.add_row("product_options", {
            "product_id": product["id"], "name": "Full activation", "price": "10.00", "type": "full_activation"}),
        "link": fake.add_row("product_options", {
            "product_id": product["id"], "name": "Student verification", "price": "5.00", "type": "student_verification"}),
        "text": fake.add_row("product_options", {
            "product_id": product["id"], "name": "Custom request", "price": "3.50", "type": "text"}),
        "auto": fake.add_row("product_options", {
            "product_id": product["id"], "name": "Shared account", "price": "4.00", "type": "auto"}),
        "instant": fake.add_row("product_options", {
            "product_id": instant["id"], "name": "1 month key", "price": "2.00", "type": None}),
    }
    stock = [
        fake.add_row("stock_items", {"product_id": product["id"], "option_id": options["auto"]["id"],
                                     "content": "user1:pass1", "is_sold": False}),
        fake.add_row("stock_items", {"product_id": product["id"], "option_id": options["auto"]["id"],
                                     "content": "user2:pass2", "is_sold": False}),
        fake.add_row("stock_items", {"product_id": instant["id"], "option_id": options["instant"]["id"],
                                     "content": "KEY-AAAA", "is_sold": False}),
    ]
    token = fake.add_row("tokens", {"token": "TOKEN-123", "balance": "20.00"})
    return {"product": product, "instant_product": instant, "options": options, "stock": stock, "token": token}
