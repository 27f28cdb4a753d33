"""Interest-tag scoring for candidate places."""
from __future__ import annotations

from typing import Dict, Iterable, Tuple

from itinerary_engine.schemas import RecommendedPlace

# Keyword sets per canonical interest tag. Entries cover the Kakao category
# vocabulary, the Kakao category group codes and plain English labels.
PREFERENCE_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "food": ("음식점", "맛집", "카페", "디저트", "FD6", "CE7", "restaurant", "food"),
    "sightseeing": ("관광명소", "박물관", "전시관", "AT4", "CT1", "attraction", "landmark"),
    "shopping": ("쇼핑몰", "백화점", "시장", "MT1", "CS2", "mall", "market", "shopping"),
    "nature": ("공원", "해수욕장", "산", "강", "AT4", "park", "beach", "mountain", "nature"),
    "culture": ("박물관", "미술관", "공연장", "문화재", "CT1", "AC5", "museum", "gallery", "heritage"),
    "experience": ("체험관", "테마파크", "스포츠", "AT4", "AD5", "theme park", "experience"),
    "relaxation": ("카페", "공원", "스파", "호텔", "CE7", "AT4", "spa", "park"),
    "nightview": ("전망대", "다리", "타워", "AT4", "observatory", "tower", "bridge"),
    "photo": ("전망대", "포토존", "명소", "AT4", "viewpoint", "scenic"),
    "beach": ("해수욕장", "해변", "바다", "beach", "coast"),
    "mountain": ("산", "등산", "케이블카", "mountain", "trail", "cable car"),
    "art": ("미술관", "갤러리", "전시", "공연", "gallery", "art"),
    "cafe": ("카페", "디저트", "베이커리", "CE7", "cafe", "dessert", "bakery"),
    "nightlife": ("술집", "바", "야경", "클럽", "bar", "pub", "nightlife"),
}

# The wizard historically sent Korean labels; map them onto the canonical tags.
INTEREST_ALIASES: Dict[str, str] = {
    "맛집": "food",
    "음식": "food",
    "관광": "sightseeing",
    "쇼핑": "shopping",
    "자연": "nature",
    "문화": "culture",
    "문화/역사": "culture",
    "체험": "experience",
    "휴식": "relaxation",
    "야경": "nightview",
    "사진명소": "photo",
    "해변/바다": "beach",
    "산/등산": "mountain",
    "예술": "art",
    "카페/디저트": "cafe",
    "나이트라이프": "nightlife",
    "attraction": "sightseeing",
    "attractions": "sightseeing",
    "museums": "culture",
    "outdoors": "nature",
}


def canonical_interest(tag: str) -> str:
    cleaned = (tag or "").strip()
    return INTEREST_ALIASES.get(cleaned, INTEREST_ALIASES.get(cleaned.lower(), cleaned.lower()))


def preference_score(place: RecommendedPlace, interests: Iterable[str]) -> int:
    """Score how well ``place`` matches the user's interest tags.

    +10 for every keyword of an interest found in the category label, +5 for
    every derived tag that contains one of those keywords and +15 when the
    interest text itself appears in the place name.
    """
    score = 0
    category = place.category.lower()
    tags = [tag.lower() for tag in place.tags]
    name = place.name.lower()

    for interest in interests:
        if not interest:
            continue
        keywords = [kw.lower() for kw in PREFERENCE_KEYWORDS.get(canonical_interest(interest), ())]
        for keyword in keywords:
            if keyword in category:
                score += 10
        for tag in tags:
            if any(keyword in tag for keyword in keywords):
                score += 5
        if interest.lower() in name:
            score += 15
    return score


def rating_score(place: RecommendedPlace) -> float:
    rating = min(5.0, max(0.0, place.rating or 0.0))
    return rating * 10


def review_score(place: RecommendedPlace) -> float:
    return min(20.0, (place.review_count or 0) / 10)


def composite_score(place: RecommendedPlace, interests: Iterable[str], popularity: float = 0.0) -> float:
    """Popularity + preference + rating (0-50) + reviews (0-20)."""
    return popularity + preference_score(place, interests) + rating_score(place) + review_score(place)


def rank_key(place: RecommendedPlace) -> float:
    """Ordering used when picking within a bucket: rating weighted over match score."""
    return (place.rating or 0.0) * 20 + place.match_score


def final_score(place: RecommendedPlace) -> float:
    """Ordering used for the aggregated, de-duplicated candidate list."""
    return rank_key(place) + (place.review_count or 0) / 10
