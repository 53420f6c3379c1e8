# storefront/services/cart_service.py
import base64
import logging
import math
import struct
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from storefront.core.constants import (
    CART_COOKIE,
    ERROR_MESSAGES,
    MAX_COOKIE_BYTES,
    MAX_CART_ITEMS,
    MAX_PRODUCT_QUANTITY,
)
from storefront.models.cart import CartItem
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import (
    CartItemStatus,
    CartLine,
    CartPreview,
    CartResult,
    CartSummary,
)

logger = logging.getLogger(__name__)

GUEST_USER_ID = "guest"

TOO_MANY_ITEMS = f"حداکثر {MAX_CART_ITEMS} آیتم در سبد خرید مجاز است"
TOO_MANY_UNITS = f"حداکثر تعداد مجاز برای هر محصول {MAX_PRODUCT_QUANTITY} عدد است"
ITEM_NOT_FOUND = "آیتم در سبد خرید یافت نشد"
PRODUCT_NOT_FOUND = "محصول یافت نشد"
PRICE_NOT_FOUND = "قیمت محصول یافت نشد"
GUEST_CART_FULL = "سبد خرید مهمان پر است؛ برای افزودن محصولات بیشتر وارد حساب خود شوید"

# Guest cookie record: line id timestamp (ms), product uuid, quantity
_GUEST_RECORD = struct.Struct(">Q16sH")
# Room left for the cookie value once name and attributes are counted
GUEST_COOKIE_BUDGET = MAX_COOKIE_BYTES - len(CART_COOKIE) - 128


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Storage strategies
# ---------------------------------------------------------------------------


class CartStore:
    """
    Where a cart lives. Guests keep theirs in a cookie, signed-in users in
    the cart_items table; CartService only talks to this interface.
    """

    is_guest: bool = False

    def lines(self) -> list[CartLine]:
        raise NotImplementedError

    def add(self, product_id: uuid.UUID, quantity: int, price: float, price_type: str) -> None:
        """Add units of a product, merging into its existing line if any."""
        raise NotImplementedError

    def set_quantity(self, item_id: str, quantity: int) -> bool:
        raise NotImplementedError

    def remove(self, item_id: str) -> bool:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def find(self, product_id: uuid.UUID) -> CartLine | None:
        return next((ln for ln in self.lines() if ln.product_id == product_id), None)

    def has_room_for_line(self) -> bool:
        """Whether one more distinct product can be stored."""
        return True


class GuestCartStore(CartStore):
    """
    Cart of an anonymous visitor, kept in a cookie.

    Lines get synthetic ids `temp_<ms timestamp>` and user_id "guest".
    The cookie holds one fixed-size record per line (id timestamp,
    product id, quantity), base64url encoded without padding; prices,
    names and images are looked up again on every load. A full cart of
    MAX_CART_ITEMS lines stays well below the browser cookie limit.
    """

    is_guest = True

    def __init__(self, raw: str | None = None, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lines: list[CartLine] = []
        self.changed = False
        if raw:
            try:
                self._lines = self._decode(raw)
            except (ValueError, OverflowError, OSError) as exc:
                # Unreadable cookie: start over with an empty cart.
                logger.warning("Discarding malformed guest cart cookie: %s", exc)
                self.changed = True

    @staticmethod
    def _decode(raw: str) -> list[CartLine]:
        data = base64.urlsafe_b64decode(raw + "=" * (-len(raw) % 4))
        if len(data) % _GUEST_RECORD.size:
            raise ValueError(f"cookie length {len(data)} is not a whole number of lines")
        lines = []
        for ms, product_id, quantity in _GUEST_RECORD.iter_unpack(data):
            if not 0 < quantity <= MAX_PRODUCT_QUANTITY:
                raise ValueError(f"quantity {quantity} out of range")
            stamp = datetime.fromtimestamp(ms / 1000, timezone.utc)
            lines.append(
                CartLine(
                    id=f"temp_{ms}",
                    user_id=GUEST_USER_ID,
                    product_id=uuid.UUID(bytes=product_id),
                    quantity=quantity,
                    price=0,
                    created_at=stamp,
                    updated_at=stamp,
                )
            )
        return lines

    @staticmethod
    def encoded_size(line_count: int) -> int:
        """Cookie value length for `line_count` lines."""
        return math.ceil(line_count * _GUEST_RECORD.size * 4 / 3)

    def has_room_for_line(self) -> bool:
        return self.encoded_size(len(self._lines) + 1) <= GUEST_COOKIE_BUDGET

    def _new_id(self) -> str:
        ms = int(self._clock() * 1000)
        taken = {ln.id for ln in self._lines}
        while f"temp_{ms}" in taken:
            ms += 1
        return f"temp_{ms}"

    def lines(self) -> list[CartLine]:
        return list(self._lines)

    def add(self, product_id, quantity, price, price_type) -> None:
        existing = self.find(product_id)
        if existing is not None:
            existing.quantity += quantity
            existing.updated_at = _now()
        else:
            now = _now()
            self._lines.append(
                CartLine(
                    id=self._new_id(),
                    user_id=GUEST_USER_ID,
                    product_id=product_id,
                    quantity=quantity,
                    price=price,
                    price_type=price_type,
                    created_at=now,
                    updated_at=now,
                )
            )
        self.changed = True

    def set_quantity(self, item_id, quantity) -> bool:
        for line in self._lines:
            if line.id == item_id:
                line.quantity = quantity
                line.updated_at = _now()
                self.changed = True
                return True
        return False

    def remove(self, item_id) -> bool:
        kept = [ln for ln in self._lines if ln.id != item_id]
        if len(kept) == len(self._lines):
            return False
        self._lines = kept
        self.changed = True
        return True

    def clear(self) -> None:
        self._lines = []
        self.changed = True

    def to_cookie(self) -> str | None:
        """Cookie value, or None when the cookie should be erased."""
        if not self._lines:
            return None
        data = b"".join(
            _GUEST_RECORD.pack(
                int(ln.id.removeprefix("temp_")), ln.product_id.bytes, ln.quantity
            )
            for ln in self._lines
        )
        return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


class RemoteCartStore(CartStore):
    """Cart rows of a signed-in user."""

    def __init__(self, session: Session, user_id: uuid.UUID, repo: CartRepository):
        self.session = session
        self.user_id = user_id
        self.repo = repo

    @staticmethod
    def _to_line(row: CartItem) -> CartLine:
        return CartLine(
            id=str(row.id),
            user_id=str(row.user_id),
            product_id=row.product_id,
            quantity=row.quantity,
            price=row.price,
            price_type=row.price_type,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _row(self, item_id: str) -> CartItem | None:
        try:
            row_id = uuid.UUID(item_id)
        except ValueError:
            return None
        return self.repo.get_for_user(self.session, self.user_id, row_id)

    def lines(self) -> list[CartLine]:
        return [self._to_line(r) for r in self.repo.list_for_user(self.session, self.user_id)]

    def add(self, product_id, quantity, price, price_type) -> None:
        existing = self.repo.get_item(self.session, self.user_id, product_id)
        if existing is not None:
            existing.quantity += quantity
            self.repo.update(self.session, existing)
            return
        self.repo.create(
            self.session,
            CartItem(
                user_id=self.user_id,
                product_id=product_id,
                quantity=quantity,
                price=price,
                price_type=price_type,
            ),
        )

    def set_quantity(self, item_id, quantity) -> bool:
        row = self._row(item_id)
        if row is None:
            return False
        row.quantity = quantity
        self.repo.update(self.session, row)
        return True

    def remove(self, item_id) -> bool:
        row = self._row(item_id)
        if row is None:
            return False
        self.repo.delete(self.session, row)
        return True

    def clear(self) -> None:
        # One delete per row, like removing each line by hand.
        for row in self.repo.list_for_user(self.session, self.user_id):
            self.repo.delete(self.session, row)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - pick the storage strategy (cookie for guests, rows for users)
      - enforce MAX_CART_ITEMS lines and MAX_PRODUCT_QUANTITY per line
      - resolve unit prices from the viewer's price list
      - compute totals and previews
      - report mutation failures as CartResult instead of raising
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    def open_store(
        self,
        session: Session,
        user: User | None,
        guest_cookie: str | None = None,
    ) -> CartStore:
        if user is None:
            return GuestCartStore(guest_cookie)
        return RemoteCartStore(session, user.id, self.cart_repo)

    # ---- reads ----

    def load(self, session: Session, store: CartStore) -> CartSummary:
        """
        Current lines with product name and cover image attached, plus
        total_items (sum of quantities) and total_amount (sum of
        quantity x price). Guest lines carry no price in their cookie and
        are priced from the current price list.
        """
        lines = store.lines()
        for line in lines:
            if store.is_guest:
                price = self.product_repo.get_price(session, line.product_id, line.price_type)
                if price is not None:
                    line.price = price.price
            product = self.product_repo.get_by_id(session, line.product_id)
            if product is not None:
                line.product_name = product.name
                line.product_image = product.images[0] if product.images else None

        return CartSummary(
            items=lines,
            total_items=sum(ln.quantity for ln in lines),
            total_amount=sum(ln.quantity * ln.price for ln in lines),
            is_guest=store.is_guest,
        )

    def summary(self, session: Session, store: CartStore) -> CartPreview:
        """Header badge / mini-cart data: counts plus the first 3 lines."""
        cart = self.load(session, store)
        return CartPreview(
            item_count=cart.total_items,
            total_amount=cart.total_amount,
            is_empty=not cart.items,
            items=cart.items[:3],
        )

    def is_in_cart(self, store: CartStore, product_id: uuid.UUID) -> bool:
        return store.find(product_id) is not None

    def get_item_quantity(self, store: CartStore, product_id: uuid.UUID) -> int:
        line = store.find(product_id)
        return line.quantity if line else 0

    def item_status(self, store: CartStore, product_id: uuid.UUID) -> CartItemStatus:
        line = store.find(product_id)
        return CartItemStatus(
            product_id=product_id,
            in_cart=line is not None,
            quantity=line.quantity if line else 0,
            cart_item_id=line.id if line else None,
        )

    # ---- mutations ----

    def _mutate(
        self,
        session: Session,
        store: CartStore,
        action: Callable[[], str | None],
    ) -> CartResult:
        """
        Run a mutation; `action` returns an error message to reject it.
        Backend errors are logged and reported with the generic message.
        """
        try:
            error = action()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Cart update failed: %s", exc)
            error = ERROR_MESSAGES["server"]
        return CartResult(
            success=error is None,
            error=error,
            cart=self.load(session, store),
        )

    def add_item(
        self,
        session: Session,
        store: CartStore,
        product_id: uuid.UUID,
        quantity: int = 1,
        price_type: str = "retail",
    ) -> CartResult:
        """
        Add a product to the cart.

        Rules:
          - a full cart (MAX_CART_ITEMS lines) accepts nothing more
          - a guest cart also stops taking new products once its cookie
            would outgrow the browser limit
          - quantity, and the merged line quantity, <= MAX_PRODUCT_QUANTITY
          - product must exist, be active and have a price of `price_type`
          - adding a product already in the cart sums the quantities
        """

        def action() -> str | None:
            lines = store.lines()
            if len(lines) >= MAX_CART_ITEMS:
                return TOO_MANY_ITEMS
            if quantity > MAX_PRODUCT_QUANTITY:
                return TOO_MANY_UNITS

            existing = next((ln for ln in lines if ln.product_id == product_id), None)
            if existing is not None and existing.quantity + quantity > MAX_PRODUCT_QUANTITY:
                return TOO_MANY_UNITS
            if existing is None and not store.has_room_for_line():
                return GUEST_CART_FULL

            if self.product_repo.get_active(session, product_id) is None:
                return PRODUCT_NOT_FOUND
            price = self.product_repo.get_price(session, product_id, price_type)
            if price is None:
                return PRICE_NOT_FOUND

            store.add(product_id, quantity, price.price, price_type)
            return None

        return self._mutate(session, store, action)

    def remove_item(self, session: Session, store: CartStore, item_id: str) -> CartResult:
        return self._mutate(
            session,
            store,
            lambda: None if store.remove(item_id) else ITEM_NOT_FOUND,
        )

    def update_quantity(
        self,
        session: Session,
        store: CartStore,
        item_id: str,
        quantity: int,
    ) -> CartResult:
        """
        Set a line's quantity. Zero or less removes the line.
        """
        if quantity <= 0:
            return self.remove_item(session, store, item_id)

        def action() -> str | None:
            if quantity > MAX_PRODUCT_QUANTITY:
                return TOO_MANY_UNITS
            if not store.set_quantity(item_id, quantity):
                return ITEM_NOT_FOUND
            return None

        return self._mutate(session, store, action)

    def clear(self, session: Session, store: CartStore) -> CartResult:
        def action() -> None:
            store.clear()

        return self._mutate(session, store, action)

    def increment(
        self,
        session: Session,
        store: CartStore,
        product_id: uuid.UUID,
    ) -> CartResult:
        line = store.find(product_id)
        if line is None:
            return CartResult(
                success=False, error=ITEM_NOT_FOUND, cart=self.load(session, store)
            )
        return self.update_quantity(session, store, line.id, line.quantity + 1)

    def decrement(
        self,
        session: Session,
        store: CartStore,
        product_id: uuid.UUID,
    ) -> CartResult:
        """One unit less; the last unit removes the line."""
        line = store.find(product_id)
        if line is None:
            return CartResult(
                success=False, error=ITEM_NOT_FOUND, cart=self.load(session, store)
            )
        if line.quantity > 1:
            return self.update_quantity(session, store, line.id, line.quantity - 1)
        return self.remove_item(session, store, line.id)

    # ---- sign-in ----

    def merge_guest_cart(
        self,
        session: Session,
        user: User,
        guest: GuestCartStore,
        price_type: str = "retail",
    ) -> CartSummary:
        """
        Move a guest cart into the user's server cart after sign-in.

        Each guest line goes through add_item, so quantities are summed
        with existing rows, prices are re-resolved for the account's price
        list and the cart ceilings still hold. Lines that cannot be added
        (ceilings, vanished products) are dropped and logged.
        """
        remote = RemoteCartStore(session, user.id, self.cart_repo)
        for line in guest.lines():
            room = MAX_PRODUCT_QUANTITY - self.get_item_quantity(remote, line.product_id)
            quantity = min(line.quantity, room)
            if quantity <= 0:
                continue
            result = self.add_item(session, remote, line.product_id, quantity, price_type)
            if not result.success:
                logger.info(
                    "Guest cart line %s not merged for user %s: %s",
                    line.product_id,
                    user.id,
                    result.error,
                )
        guest.clear()
        return self.load(session, remote)
