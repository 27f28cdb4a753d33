"""Category-label classification into itinerary buckets."""
from __future__ import annotations

import re
from typing import List, Tuple

from itinerary_engine.schemas import Bucket

# Evaluated top to bottom; the first rule with a matching keyword wins.
# Cafe and nightlife must stay ahead of food: Kakao files both cafes and bars
# under "음식점" ("음식점 > 카페", "음식점 > 술집").
CATEGORY_RULES: Tuple[Tuple[Tuple[str, ...], Bucket], ...] = (
    (
        (
            "숙박", "호텔", "모텔", "펜션", "게스트하우스", "리조트", "콘도", "민박",
            "hotel", "motel", "hostel", "guesthouse", "resort", "lodging", "inn",
        ),
        "accommodation",
    ),
    (
        (
            "교통", "기차역", "지하철역", "버스터미널", "터미널", "공항", "항만",
            "airport", "station", "terminal", "transit",
        ),
        "transport",
    ),
    (
        (
            "카페", "커피", "디저트", "베이커리", "제과", "빙수", "찻집",
            "cafe", "coffee", "dessert", "bakery", "teahouse", "patisserie",
        ),
        "cafe",
    ),
    (
        (
            "술집", "주점", "호프", "와인바", "칵테일", "클럽", "야경", "나이트",
            "bar", "pub", "club", "nightlife", "brewery",
        ),
        "nightlife",
    ),
    (
        (
            "음식점", "식당", "맛집", "한식", "중식", "일식", "양식", "분식", "해물", "고기",
            "restaurant", "food", "dining", "eatery", "bistro", "diner",
        ),
        "food",
    ),
    (
        (
            "쇼핑", "백화점", "시장", "아울렛", "쇼핑몰", "면세점", "상가",
            "shopping", "mall", "market", "outlet", "department store",
        ),
        "shopping",
    ),
    (
        (
            "박물관", "미술관", "전시", "공연", "문화", "유적", "사찰", "궁궐", "문화재", "갤러리",
            "museum", "gallery", "exhibition", "theater", "theatre", "temple", "palace", "heritage",
        ),
        "culture",
    ),
)

DEFAULT_BUCKET: Bucket = "attraction"


def _matches(keyword: str, label: str) -> bool:
    if keyword.isascii():
        return re.search(rf"\b{re.escape(keyword)}\b", label) is not None
    return keyword in label


def categorize(label: str | None) -> Bucket:
    """Map a raw provider category label onto one bucket."""
    lowered = (label or "").lower()
    if not lowered.strip():
        return DEFAULT_BUCKET
    for keywords, bucket in CATEGORY_RULES:
        if any(_matches(keyword, lowered) for keyword in keywords):
            return bucket
    return DEFAULT_BUCKET


def derive_tags(label: str | None) -> List[str]:
    """Split a hierarchical label such as ``"음식점 > 카페 > 디저트카페"``."""
    if not label:
        return []
    return [part.strip() for part in label.split(">") if part.strip()]
