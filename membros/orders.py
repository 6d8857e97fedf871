from collections.abc import Collection

import msgspec

from membros import _app, _config, _enums, _errors, _http, _types, customers, validation

__all__ = (
    "cancel",
    "create",
    "create_boleto",
    "create_credit_card",
    "create_pix",
    "get_boleto",
    "get_pix_qr_code",
    "get_status",
    "list",
    "list_refunds",
    "refund",
    "retrieve",
)

PIX_EXPIRES_IN = 3600
"""Default PIX expiration, one hour."""
BOLETO_EXPIRES_IN = 259200
"""Default boleto expiration, three days."""


class Order(msgspec.Struct, kw_only=True):
    """A Membros order."""
    id: str
    customer_id: str
    items: list[validation.OrderItem]
    amount: int
    """Total amount in cents."""
    payment_method: _enums.PaymentMethod
    status: _enums.OrderStatus
    created_at: str
    updated_at: str
    customer: customers.Customer | None = None
    metadata: _types.Metadata | None = None
    pix_qr_code: str | None = None
    pix_qr_code_url: str | None = None
    pix_expires_at: str | None = None
    boleto_url: str | None = None
    boleto_barcode: str | None = None
    boleto_expires_at: str | None = None
    paid_at: str | None = None
    canceled_at: str | None = None
    expired_at: str | None = None


class Refund(msgspec.Struct, kw_only=True):
    id: str
    order_id: str
    amount: int
    """Refunded amount in cents."""
    status: _enums.RefundStatus
    created_at: str
    updated_at: str
    reason: str | None = None
    metadata: _types.Metadata | None = None
    processed_at: str | None = None


class PixQrCode(msgspec.Struct):
    qr_code: str
    """PIX copy-and-paste payload."""
    qr_code_url: str
    expires_at: str


class Boleto(msgspec.Struct):
    boleto_url: str
    barcode: str
    expires_at: str


class OrderStatusInfo(msgspec.Struct, kw_only=True):
    status: _enums.OrderStatus
    payment_status: str
    paid_at: str | None = None
    amount_paid: int | None = None


def _prepare_order(
    customer: str | customers.NewCustomer,
    items: Collection[validation.OrderItem],
    payment_method: _enums.PaymentMethod,
    expires_in: int | None,
    metadata: _types.Metadata | None,
) -> dict[str, _http.JSON]:
    validation.validate_order_items(items)
    customer_data = customer if isinstance(customer, str) else customers.prepare_customer(customer)
    return _http.compact({
        "customer": customer_data,
        "items": items,
        "amount": sum(item.amount * item.quantity for item in items),
        "payment_method": payment_method,
        "expires_in": expires_in,
        "metadata": metadata,
    })


async def _create(
    payload: dict[str, _http.JSON],
    path: str,
    app: _app.Application | None,
) -> Order:
    app = _app.check_initialized_app(app)
    response = await app.http.post(path, payload, response_type=Order)
    return response.data


async def create(
    customer: str | customers.NewCustomer,
    items: Collection[validation.OrderItem],
    payment_method: _enums.PaymentMethod,
    expires_in: int | None = None,
    metadata: _types.Metadata | None = None,
    app: _app.Application | None = None,
) -> Order:
    """
    Create an order.

    Parameters
    ----------
    customer : str or NewCustomer
        ID of a registered customer, or the data of a new one.
    items : Collection[OrderItem]
        Order lines. Amounts are integer cents.
    payment_method : PaymentMethod
        Payment rail.
    expires_in : int, optional
        Seconds until a PIX or boleto order expires.
    metadata : dict, optional
        Free key/value data stored with the order.
    app : Application, optional
        Membros application configuration.

    Returns
    -------
    Order
        The created order. Its amount is the sum of ``amount * quantity``.

    Raises
    ------
    MembrosValidationError
        If an item or the customer data fails local validation. Nothing is
        sent in that case.
    MembrosError
        If Membros rejects the request.
    msgspec.DecodeError
        If the response cannot be decoded.
    """
    payload = _prepare_order(customer, items, payment_method, expires_in, metadata)
    return await _create(payload, _http.build_path("orders"), app)


async def create_pix(
    customer: str | customers.NewCustomer,
    items: Collection[validation.OrderItem],
    expires_in: int = PIX_EXPIRES_IN,
    metadata: _types.Metadata | None = None,
    app: _app.Application | None = None,
) -> Order:
    """
    Create a PIX order. The QR code is available in the returned order and
    through :func:`get_pix_qr_code`.
    """
    payload = _prepare_order(customer, items, _enums.PaymentMethod.PIX, expires_in, metadata)
    return await _create(payload, _http.build_path("orders", "pix"), app)


async def create_credit_card(
    customer: str | customers.NewCustomer,
    items: Collection[validation.OrderItem],
    card_token: str,
    installments: int = 1,
    metadata: _types.Metadata | None = None,
    app: _app.Application | None = None,
) -> Order:
    """
    Create a credit card order.

    Raises
    ------
    MembrosValidationError
        With code ``MISSING_CARD_TOKEN`` if ``card_token`` is empty.
    """
    if not card_token:
        raise _errors.MembrosValidationError(
            "Card token is required for credit card payments",
            "MISSING_CARD_TOKEN",
        )
    payload = _prepare_order(
        customer, items, _enums.PaymentMethod.CREDIT_CARD, None, metadata
    )
    payload["card_token"] = card_token
    payload["installments"] = installments
    return await _create(payload, _http.build_path("orders", "credit-card"), app)


async def create_boleto(
    customer: str | customers.NewCustomer,
    items: Collection[validation.OrderItem],
    expires_in: int = BOLETO_EXPIRES_IN,
    metadata: _types.Metadata | None = None,
    app: _app.Application | None = None,
) -> Order:
    """Create a boleto order."""
    payload = _prepare_order(customer, items, _enums.PaymentMethod.BOLETO, expires_in, metadata)
    return await _create(payload, _http.build_path("orders", "boleto"), app)


async def retrieve(order_id: str, app: _app.Application | None = None) -> Order:
    app = _app.check_initialized_app(app)
    response = await app.http.get(_http.build_path("orders", order_id), response_type=Order)
    return response.data


async def list(
    limit: int | None = None,
    offset: int | None = None,
    customer_id: str | None = None,
    status: _enums.OrderStatus | None = None,
    payment_method: _enums.PaymentMethod | None = None,
    created_after: str | None = None,
    created_before: str | None = None,
    app: _app.Application | None = None,
) -> _types.ListResponse[Order]:
    """List orders, newest first, with optional filters."""
    params = _types.ListParams(
        limit=limit,
        offset=offset,
        created_after=created_after,
        created_before=created_before,
    ).to_query()
    params["customer_id"] = customer_id
    params["status"] = status
    params["payment_method"] = payment_method

    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("orders"),
        _config.RequestOptions(params=params),
        response_type=_types.ListResponse[Order],
    )
    return response.data


async def cancel(
    order_id: str,
    reason: str | None = None,
    app: _app.Application | None = None,
) -> Order:
    """Cancel a pending order."""
    app = _app.check_initialized_app(app)
    response = await app.http.post(
        _http.build_path("orders", order_id, "cancel"),
        _http.compact({"reason": reason}),
        response_type=Order,
    )
    return response.data


async def refund(
    order_id: str,
    amount: int | None = None,
    reason: str | None = None,
    metadata: _types.Metadata | None = None,
    app: _app.Application | None = None,
) -> Refund:
    """
    Refund a paid order.

    Parameters
    ----------
    order_id : str
        Order identifier.
    amount : int, optional
        Partial amount in cents. The whole order is refunded when omitted.
    reason : str, optional
        Refund reason.
    metadata : dict, optional
        Free key/value data stored with the refund.
    app : Application, optional
        Membros application configuration.

    Raises
    ------
    MembrosValidationError
        If ``amount`` is not a positive integer.
    """
    if amount is not None and (
        not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0
    ):
        raise _errors.MembrosValidationError(
            "Refund amount must be a positive integer (in cents)",
            "REFUND_VALIDATION_ERROR",
        )
    app = _app.check_initialized_app(app)
    response = await app.http.post(
        _http.build_path("orders", order_id, "refunds"),
        _http.compact({"amount": amount, "reason": reason, "metadata": metadata}),
        response_type=Refund,
    )
    return response.data


async def get_pix_qr_code(order_id: str, app: _app.Application | None = None) -> PixQrCode:
    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("orders", order_id, "pix", "qr-code"), response_type=PixQrCode
    )
    return response.data


async def get_boleto(order_id: str, app: _app.Application | None = None) -> Boleto:
    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("orders", order_id, "boleto"), response_type=Boleto
    )
    return response.data


async def list_refunds(
    order_id: str,
    app: _app.Application | None = None,
) -> _types.ListResponse[Refund]:
    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("orders", order_id, "refunds"),
        response_type=_types.ListResponse[Refund],
    )
    return response.data


async def get_status(order_id: str, app: _app.Application | None = None) -> OrderStatusInfo:
    """Current order status and payment details."""
    app = _app.check_initialized_app(app)
    response = await app.http.get(
        _http.build_path("orders", order_id, "status"), response_type=OrderStatusInfo
    )
    return response.data
