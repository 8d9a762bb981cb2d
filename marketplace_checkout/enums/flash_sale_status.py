from enum import Enum


class FlashSaleStatus(str, Enum):
    draft = "draft"
    active = "active"
    inactive = "inactive"
    archived = "archived"
