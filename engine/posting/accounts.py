"""
전기 계정 결정

비용 카테고리, 거래처 키워드, 인보이스 line item을 계정과목 코드로 매핑.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.constants import AccountCodes

# 비용 카테고리 → 계정 코드
CATEGORY_ACCOUNT_MAPPING: dict[str, str] = {
    "SOFTWARE": "6030",
    "TELECOMMUNICATIONS": "6150",
    "BANK_FEES": "6100",
    "UTILITIES": "6080",
    "OFFICE_SUPPLIES": "6020",
    "PROFESSIONAL_SERVICES": "6090",
    "INSURANCE": "6110",
    "LEGAL_COMPLIANCE": "6120",
    "TRAINING": "6130",
    "RENT": "6070",
    "TRAVEL": "6060",
    "MARKETING": "6040",
    "COGS": "5010",
    "MEALS": "6140",
    "GENERAL_EXPENSE": "6999",
}

# vendor + description에서 키워드 검색 (부분 문자열, 대소문자 무시)
# 이 순서에서 처음 일치한 카테고리 사용
KEYWORD_MAPPINGS: dict[str, tuple[str, ...]] = {
    "SOFTWARE": (
        "software", "adobe", "microsoft", "google", "cloud", "saas", "hosting",
        "domain", "server", "slack", "zoom", "dropbox", "notion",
    ),
    "TELECOMMUNICATIONS": (
        "phone", "internet", "wifi", "mobile", "cellular", "verizon", "t-mobile",
        "comcast", "spectrum", "xfinity", "fiber", "telephone",
    ),
    "BANK_FEES": ("bank", "wire", "overdraft", "atm", "merchant", "paypal", "stripe"),
    "UTILITIES": ("utility", "electric", "power", "water", "sewer", "garbage", "energy"),
    "OFFICE_SUPPLIES": (
        "office", "supplies", "stationery", "paper", "printer", "ink", "toner",
        "desk", "chair", "furniture", "staples",
    ),
    "PROFESSIONAL_SERVICES": (
        "legal", "attorney", "lawyer", "consulting", "consultant", "accountant",
        "accounting", "audit", "bookkeeping", "advisor",
    ),
    "INSURANCE": ("insurance", "liability", "coverage", "premium"),
    "TRAINING": (
        "training", "education", "course", "workshop", "seminar", "certification",
        "conference", "udemy", "coursera",
    ),
    "RENT": ("rent", "lease", "coworking", "workspace"),
    "TRAVEL": (
        "travel", "flight", "hotel", "airfare", "airline", "airport", "uber",
        "lyft", "taxi", "fuel", "parking", "toll", "mileage",
    ),
    "MARKETING": (
        "marketing", "advertising", "promotion", "facebook", "linkedin",
        "instagram", "youtube", "campaign", "seo",
    ),
    "MEALS": (
        "meal", "restaurant", "lunch", "dinner", "breakfast", "coffee",
        "catering", "starbucks", "doordash", "grubhub",
    ),
}

# 인보이스 카테고리 → 수익 계정 코드
REVENUE_CATEGORY_MAPPING: dict[str, str] = {
    "SOFTWARE": AccountCodes.SERVICE_REVENUE,
    "PROFESSIONAL_SERVICES": AccountCodes.SERVICE_REVENUE,
    "CONSULTING": AccountCodes.SERVICE_REVENUE,
    "MARKETING": AccountCodes.SERVICE_REVENUE,
    "TRAINING": AccountCodes.SERVICE_REVENUE,
    "OFFICE_SUPPLIES": AccountCodes.SALES_REVENUE,
    "PRODUCT": AccountCodes.PRODUCT_REVENUE,
    "SUBSCRIPTION": AccountCodes.SUBSCRIPTION_REVENUE,
}

# Line item 키워드 → 수익 계정 코드 (첫 일치 사용)
LINE_ITEM_REVENUE_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("web development", "website", "development", "design", "consulting"), AccountCodes.SERVICE_REVENUE),
    (("seo", "marketing"), AccountCodes.PRODUCT_REVENUE),
    (("training", "documentation", "support", "hosting", "maintenance", "subscription"), AccountCodes.SUBSCRIPTION_REVENUE),
)


@dataclass(frozen=True)
class AccountResolution:
    """결정된 계정 코드와 이를 만든 규칙"""

    account_code: str
    source: str  # USER | CATEGORY_KEY | KEYWORDS | FALLBACK


def find_keyword_category(*texts: str | None) -> str | None:
    """결합된 텍스트에 키워드가 나타나는 첫 카테고리"""
    search_text = " ".join(t for t in texts if t).lower()
    if not search_text:
        return None
    for category_key, keywords in KEYWORD_MAPPINGS.items():
        for keyword in keywords:
            if keyword in search_text:
                return category_key
    return None


def resolve_expense_account(
    account_code: str | None = None,
    category_key: str | None = None,
    vendor_name: str | None = None,
    description: str | None = None,
) -> AccountResolution:
    """비용 차변 계정

    우선순위: 명시 코드 > category key > 키워드 > General Expense
    """
    if account_code:
        return AccountResolution(account_code, "USER")

    if category_key:
        code = CATEGORY_ACCOUNT_MAPPING.get(category_key.upper())
        if code:
            return AccountResolution(code, "CATEGORY_KEY")

    keyword_category = find_keyword_category(vendor_name, description)
    if keyword_category:
        return AccountResolution(CATEGORY_ACCOUNT_MAPPING[keyword_category], "KEYWORDS")

    return AccountResolution(AccountCodes.GENERAL_EXPENSE, "FALLBACK")


def resolve_revenue_account(
    revenue_account_code: str | None = None,
    category_key: str | None = None,
) -> str:
    """인보이스 단위 수익 계정 (기본 Service Revenue)"""
    if revenue_account_code:
        return revenue_account_code
    if category_key:
        return REVENUE_CATEGORY_MAPPING.get(category_key.upper(), AccountCodes.SERVICE_REVENUE)
    return AccountCodes.SERVICE_REVENUE


def resolve_line_item_account(
    description: str,
    category: str | None = None,
    revenue_account_code: str | None = None,
) -> str:
    """인보이스 line item 하나의 수익 계정"""
    if revenue_account_code:
        return revenue_account_code
    text = f"{description} {category or ''}".lower()
    for keywords, code in LINE_ITEM_REVENUE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return code
    return AccountCodes.SERVICE_REVENUE
