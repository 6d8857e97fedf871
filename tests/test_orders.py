import pytest

from membros import MembrosValidationError, OrderStatus, PaymentMethod, RefundStatus
from membros import customers, orders
from membros.validation import OrderItem

ITEMS = [
    OrderItem(description="Plano mensal", amount=1990, quantity=2),
    OrderItem(description="Taxa", amount=500, quantity=1),
]


def order_body(**overrides) -> dict:
    body = {
        "id": "ord_1",
        "customer_id": "cus_1",
        "items": [
            {"description": "Plano mensal", "amount": 1990, "quantity": 2},
            {"description": "Taxa", "amount": 500, "quantity": 1},
        ],
        "amount": 4480,
        "payment_method": "pix",
        "status": "pending",
        "created_at": "2024-01-15T12:00:00Z",
        "updated_at": "2024-01-15T12:00:00Z",
    }
    body.update(overrides)
    return body


REFUND = {
    "id": "ref_1",
    "order_id": "ord_1",
    "amount": 1000,
    "status": "processing",
    "reason": "requested_by_customer",
    "created_at": "2024-01-16T12:00:00Z",
    "updated_at": "2024-01-16T12:00:00Z",
}


class TestCreate:
    async def test_sends_items_and_computed_total(self, api, app) -> None:
        api.reply(201, order_body())

        order = await orders.create("cus_1", ITEMS, PaymentMethod.PIX, metadata={"ref": "A1"})

        request = api.requests[0]
        assert request.method == "POST"
        assert request.path == "/v2/orders"
        assert request.json() == {
            "customer": "cus_1",
            "items": [
                {"description": "Plano mensal", "amount": 1990, "quantity": 2},
                {"description": "Taxa", "amount": 500, "quantity": 1},
            ],
            "amount": 4480,
            "payment_method": "pix",
            "metadata": {"ref": "A1"},
        }
        assert order.amount == 4480
        assert order.status is OrderStatus.PENDING
        assert order.payment_method is PaymentMethod.PIX

    async def test_inline_customer_is_validated_and_formatted(self, api, app) -> None:
        api.reply(201, order_body())
        customer = customers.NewCustomer(
            name="Maria Silva", email="maria@example.com", document="12345678909"
        )

        await orders.create(customer, ITEMS, PaymentMethod.BOLETO)

        assert api.requests[0].json()["customer"] == {
            "name": "Maria Silva",
            "email": "maria@example.com",
            "document": "123.456.789-09",
            "document_type": "CPF",
        }

    async def test_zero_amount_item_is_rejected_before_sending(self, api, app) -> None:
        items = [OrderItem(description="Plano", amount=0, quantity=1)]

        with pytest.raises(MembrosValidationError) as exc_info:
            await orders.create("cus_1", items, PaymentMethod.PIX)

        assert exc_info.value.code == "ORDER_VALIDATION_ERROR"
        assert api.requests == []

    async def test_empty_items_are_rejected_before_sending(self, api, app) -> None:
        with pytest.raises(MembrosValidationError) as exc_info:
            await orders.create_pix("cus_1", [])

        assert exc_info.value.code == "MISSING_ORDER_ITEMS"
        assert api.requests == []

    async def test_invalid_inline_customer_is_rejected_before_sending(self, api, app) -> None:
        customer = customers.NewCustomer(name="M", email="maria", document="123")

        with pytest.raises(MembrosValidationError) as exc_info:
            await orders.create(customer, ITEMS, PaymentMethod.PIX)

        assert exc_info.value.code == "CUSTOMER_VALIDATION_ERROR"
        assert api.requests == []


class TestPaymentRails:
    async def test_pix_uses_one_hour_expiration(self, api, app) -> None:
        api.reply(201, order_body(pix_qr_code="000201...", pix_expires_at="2024-01-15T13:00:00Z"))

        order = await orders.create_pix("cus_1", ITEMS)

        request = api.requests[0]
        assert request.path == "/v2/orders/pix"
        assert request.json()["payment_method"] == "pix"
        assert request.json()["expires_in"] == 3600
        assert order.pix_qr_code == "000201..."

    async def test_boleto_uses_three_day_expiration(self, api, app) -> None:
        api.reply(201, order_body(payment_method="boleto", boleto_barcode="2379..."))

        order = await orders.create_boleto("cus_1", ITEMS, expires_in=86400)

        request = api.requests[0]
        assert request.path == "/v2/orders/boleto"
        assert request.json()["payment_method"] == "boleto"
        assert request.json()["expires_in"] == 86400
        assert order.boleto_barcode == "2379..."

    async def test_boleto_default_expiration(self, api, app) -> None:
        api.reply(201, order_body(payment_method="boleto"))

        await orders.create_boleto("cus_1", ITEMS)

        assert api.requests[0].json()["expires_in"] == 259200

    async def test_credit_card_sends_token_and_installments(self, api, app) -> None:
        api.reply(201, order_body(payment_method="credit_card", status="paid"))

        order = await orders.create_credit_card("cus_1", ITEMS, "tok_123", installments=3)

        request = api.requests[0]
        assert request.path == "/v2/orders/credit-card"
        body = request.json()
        assert body["payment_method"] == "credit_card"
        assert body["card_token"] == "tok_123"
        assert body["installments"] == 3
        assert "expires_in" not in body
        assert order.status is OrderStatus.PAID

    async def test_credit_card_requires_token(self, api, app) -> None:
        with pytest.raises(MembrosValidationError) as exc_info:
            await orders.create_credit_card("cus_1", ITEMS, "")

        assert exc_info.value.code == "MISSING_CARD_TOKEN"
        assert api.requests == []


class TestOrderOperations:
    async def test_retrieve(self, api, app) -> None:
        api.reply(200, order_body())

        order = await orders.retrieve("ord_1")

        assert api.requests[0].path == "/v2/orders/ord_1"
        assert order.id == "ord_1"
        assert len(order.items) == 2

    async def test_list_sends_filters(self, api, app) -> None:
        api.reply(200, {"data": [order_body()], "has_more": False})

        page = await orders.list(
            limit=10, customer_id="cus_1", status=OrderStatus.PAID, payment_method=PaymentMethod.PIX
        )

        assert api.requests[0].query == {
            "limit": "10",
            "customer_id": "cus_1",
            "status": "paid",
            "payment_method": "pix",
        }
        assert page.data[0].id == "ord_1"

    async def test_cancel(self, api, app) -> None:
        api.reply(200, order_body(status="canceled", canceled_at="2024-01-15T12:30:00Z"))

        order = await orders.cancel("ord_1", reason="duplicate")

        request = api.requests[0]
        assert request.method == "POST"
        assert request.path == "/v2/orders/ord_1/cancel"
        assert request.json() == {"reason": "duplicate"}
        assert order.status is OrderStatus.CANCELED

    async def test_get_status(self, api, app) -> None:
        api.reply(200, {"status": "paid", "payment_status": "approved", "amount_paid": 4480})

        info = await orders.get_status("ord_1")

        assert api.requests[0].path == "/v2/orders/ord_1/status"
        assert info.status is OrderStatus.PAID
        assert info.amount_paid == 4480

    async def test_get_pix_qr_code(self, api, app) -> None:
        api.reply(
            200,
            {
                "qr_code": "000201...",
                "qr_code_url": "https://pix.example/qr.png",
                "expires_at": "2024-01-15T13:00:00Z",
            },
        )

        qr_code = await orders.get_pix_qr_code("ord_1")

        assert api.requests[0].path == "/v2/orders/ord_1/pix/qr-code"
        assert qr_code.qr_code == "000201..."

    async def test_get_boleto(self, api, app) -> None:
        api.reply(
            200,
            {
                "boleto_url": "https://boleto.example/b.pdf",
                "barcode": "2379...",
                "expires_at": "2024-01-18T12:00:00Z",
            },
        )

        boleto = await orders.get_boleto("ord_1")

        assert api.requests[0].path == "/v2/orders/ord_1/boleto"
        assert boleto.barcode == "2379..."


class TestRefunds:
    async def test_partial_refund(self, api, app) -> None:
        api.reply(201, REFUND)

        refund = await orders.refund("ord_1", amount=1000, reason="requested_by_customer")

        request = api.requests[0]
        assert request.path == "/v2/orders/ord_1/refunds"
        assert request.json() == {"amount": 1000, "reason": "requested_by_customer"}
        assert refund.status is RefundStatus.PROCESSING

    async def test_full_refund_sends_empty_body(self, api, app) -> None:
        api.reply(201, {**REFUND, "amount": 4480})

        await orders.refund("ord_1")

        assert api.requests[0].json() == {}

    @pytest.mark.parametrize("amount", [0, -10, 10.5])
    async def test_rejects_invalid_amount(self, api, app, amount) -> None:
        with pytest.raises(MembrosValidationError) as exc_info:
            await orders.refund("ord_1", amount=amount)

        assert exc_info.value.code == "REFUND_VALIDATION_ERROR"
        assert api.requests == []

    async def test_list_refunds(self, api, app) -> None:
        api.reply(200, {"data": [REFUND], "total_count": 1})

        page = await orders.list_refunds("ord_1")

        assert api.requests[0].method == "GET"
        assert api.requests[0].path == "/v2/orders/ord_1/refunds"
        assert page.total_count == 1
        assert page.data[0].amount == 1000
