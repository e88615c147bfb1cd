from app.models.profile import Profile  # noqa: F401
from app.models.partner import ShippingPartner  # noqa: F401
from app.models.agreement import Agreement, Surcharge  # noqa: F401
from app.models.shipment_request import ShipmentRequest, ShipmentStatusHistory  # noqa: F401
from app.models.quote import Quote  # noqa: F401
from app.models.customer import WmsCustomer, WmsCustomerUser  # noqa: F401
from app.models.inventory import WmsInventory  # noqa: F401
from app.models.order import WmsOrder, WmsOrderItem  # noqa: F401
from app.models.invoice import WmsInvoice, WmsInvoiceItem  # noqa: F401
from app.models.payment import Payment  # noqa: F401
from app.models.notification import EmailLog, NotificationPreferences, PushSubscription  # noqa: F401
from app.models.product import Product, ProductQuote  # noqa: F401
from app.models.enums import (  # noqa: F401
    AppRole,
    InvoiceStatus,
    OrderStatus,
    OrderType,
    PaymentStatus,
    RateType,
    RequestPaymentStatus,
    ShipmentStatus,
    ShippingMode,
    SurchargeType,
    WmsRole,
)
