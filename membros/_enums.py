import enum

__all__ = (
    "DocumentType",
    "OrderStatus",
    "PaymentMethod",
    "RefundStatus",
    "UserStatus",
    "WebhookEventType",
    "WithdrawStatus",
)


class DocumentType(enum.StrEnum):
    """Brazilian taxpayer document types."""
    CPF = "CPF"
    """Individual taxpayer ID, 11 digits."""
    CNPJ = "CNPJ"
    """Company taxpayer ID, 14 digits."""


class PaymentMethod(enum.StrEnum):
    """Payment rails supported by an order."""
    PIX = "pix"
    CREDIT_CARD = "credit_card"
    BOLETO = "boleto"


class OrderStatus(enum.StrEnum):
    PENDING = "pending"
    PAID = "paid"
    CANCELED = "canceled"
    EXPIRED = "expired"
    REFUNDED = "refunded"


class RefundStatus(enum.StrEnum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class UserStatus(enum.StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class WithdrawStatus(enum.StrEnum):
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


class WebhookEventType(enum.StrEnum):
    """
    Event discriminators sent by Membros webhooks.
    """
    CHARGE_PAID = "charge.paid"
    CHARGE_PAYMENT_FAILED = "charge.payment_failed"
    CHARGE_REFUNDED = "charge.refunded"
    ORDER_CREATED = "order.created"
    ORDER_CANCELLED = "order.cancelled"
    ORDER_EXPIRED = "order.expired"
