"""
Core application constants.

Pagination defaults, header names and input rules shared by the
services and the API layer.
"""

import re

# Pagination defaults
DEFAULT_PAGE: int = 1
DEFAULT_PAGE_SIZE: int = 10
MAX_PAGE_SIZE: int = 100

# Common HTTP header names
HEADER_REQUEST_ID: str = "X-Request-ID"
HEADER_PROCESS_TIME: str = "X-Process-Time"

# Search input
MAX_SEARCH_LENGTH: int = 200
SEARCH_TERM_PATTERN = re.compile(r"^[a-zA-Z0-9\s@.-]+$")

# Promotion codes
MAX_PROMOTION_CODE_LENGTH: int = 20

# Receipt and transaction prefixes per payment method
TRANSACTION_PREFIXES = {
    "CreditCard": "CC",
    "PayPal": "PP",
    "BankTransfer": "BT",
}

# Upload folders
ROOM_IMAGES_FOLDER = "rooms"
HOTEL_IMAGES_FOLDER = "hotels"
PACKAGE_IMAGES_FOLDER = "packages"
AMENITY_IMAGES_FOLDER = "amenities"
PROFILE_IMAGES_FOLDER = "profiles"
