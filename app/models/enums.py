from __future__ import annotations

from enum import Enum


class ShippingMode(str, Enum):
    SEA = "sea"
    AIR = "air"


class DimensionUnit(str, Enum):
    CM = "cm"
    M = "m"
    IN = "in"


class WeightUnit(str, Enum):
    KG = "kg"
    LB = "lb"


class RateType(str, Enum):
    AIR_KG = "AIR_KG"
    SEA_CBM = "SEA_CBM"
    SEA_CONTAINER_20 = "SEA_CONTAINER_20"
    SEA_CONTAINER_40 = "SEA_CONTAINER_40"
    SEA_CONTAINER_40HC = "SEA_CONTAINER_40HC"
    SEA_CONTAINER_45HC = "SEA_CONTAINER_45HC"

    @property
    def is_container(self) -> bool:
        return self.value.startswith("SEA_CONTAINER_")


class SurchargeType(str, Enum):
    FUEL = "fuel"
    HANDLING = "handling"
    CUSTOMS = "customs"
    INSURANCE = "insurance"
    QC = "qc"
    STORAGE = "storage"
    DEMURRAGE = "demurrage"
    DOCUMENTATION = "documentation"
    OTHER = "other"


class MarginType(str, Enum):
    PERCENTAGE = "percentage"
    FLAT = "flat"


class ShipmentStatus(str, Enum):
    RECEIVED_FROM_SUPPLIER = "received_from_supplier"
    PROCESSING = "processing"
    PENDING_PARTNER_ACCEPTANCE = "pending_partner_acceptance"
    IN_TRANSIT = "in_transit"
    CUSTOMS = "customs"
    RECEIVED_AT_WAREHOUSE = "received_at_warehouse"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    REJECTED = "rejected"


class OrderStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderType(str, Enum):
    STANDARD = "standard"
    REORDER = "reorder"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PAID = "paid"
    OVERDUE = "overdue"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class RequestPaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class AppRole(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"
    EMPLOYEE = "employee"
    SHIPPING_PARTNER = "shipping_partner"
    ACCOUNTANT = "accountant"


class WmsRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    EMPLOYEE = "employee"
    ACCOUNTANT = "accountant"
    VIEWER = "viewer"
