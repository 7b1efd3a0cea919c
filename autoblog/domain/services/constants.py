
# Constants for the catalog search & ranking pipeline.

# Availability types that mean "ships now" (normalised upper-case)
AVAILABLE_NOW = frozenset({"NOW", "IN_STOCK"})

# Offer condition a recommendable product must have (normalised lower-case)
REQUIRED_CONDITION = "new"

# Sales rank must be strictly below this to be recommended
MAX_SALES_RANK = 10_000

# Words (plural allowed) that mark a title as an accessory rather than the device itself
ACCESSORY_INDICATORS = (
    "mount",
    "accessory",
    "accessories",
    "installation kit",
    "bracket",
    "replacement",
    "case",
    "cover",
    "screen protector",
)

# Coarse pre-filter applied on raw search titles before paying for detail calls
ACCESSORY_TITLE_PATTERN = r"\b(mounts?|mounting|cases?|accessor(?:y|ies))\b"

# Tie-break after score and sales rank. True: Prime-eligible sorts before non-Prime.
PRIME_ELIGIBLE_FIRST = True

# Rejection reasons (diagnostics only)
REASON_MISSING_TITLE = "missing_title"
REASON_NO_PRICE = "no_price"
REASON_NOT_AVAILABLE = "not_available_now"
REASON_ACCESSORY_TITLE = "accessory_title"
REASON_NO_MATCH = "no_keyword_match"
REASON_NOT_MAIN = "not_main_product"
REASON_NOT_BUY_BOX = "not_buy_box_winner"
REASON_NOT_NEW = "condition_not_new"
REASON_NO_RANK = "sales_rank_missing"
REASON_RANK_TOO_HIGH = "sales_rank_too_high"

# Catalog transport operations
OP_SEARCH = "search"
OP_GET_DETAILS = "getDetails"

# PA-API resources requested per operation
SEARCH_RESOURCES = [
    "ItemInfo.Title",
    "Offers.Listings.Availability.Type",
    "Offers.Listings.Condition",
    "Offers.Listings.Price",
]

DETAIL_RESOURCES = [
    "BrowseNodeInfo.WebsiteSalesRank",
    "Images.Primary.Large",
    "ItemInfo.ByLineInfo",
    "ItemInfo.Features",
    "ItemInfo.Title",
    "Offers.Listings.Availability.Type",
    "Offers.Listings.Condition",
    "Offers.Listings.DeliveryInfo.IsPrimeEligible",
    "Offers.Listings.IsBuyBoxWinner",
    "Offers.Listings.Price",
]
