"""Static destination knowledge: aliases, centres, specialised queries and seed places."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from itinerary_engine.schemas import Coordinate

# Seoul City Hall; used whenever a destination is unknown.
DEFAULT_CENTER = Coordinate(lat=37.5665, lng=126.9780)

REGIONS: Dict[str, Dict[str, Any]] = {
    "jeju": {
        "aliases": ("jeju", "jejuisland", "jeju island", "jeju-do", "제주", "제주도"),
        "center": (33.4996, 126.5312),
        "queries": ("제주 한라산", "제주 성산일출봉", "제주 우도", "제주 중문", "제주 협재해수욕장"),
        "seeds": (
            ("Hallasan National Park", "Travel > Nature > Mountain", 33.3617, 126.5292),
            ("Seongsan Ilchulbong", "Travel > Tourist attraction > Landmark", 33.4580, 126.9425),
            ("Dongmun Traditional Market", "Shopping > Traditional market", 33.5124, 126.5281),
            ("Jeju National Museum", "Culture > Museum", 33.5133, 126.5487),
            ("Hyeopjae Beach", "Travel > Nature > Beach", 33.3942, 126.2397),
        ),
    },
    "busan": {
        "aliases": ("busan", "부산"),
        "center": (35.1796, 129.0756),
        "queries": ("부산 해운대", "부산 광안리", "부산 감천문화마을", "부산 자갈치시장", "부산 태종대"),
        "seeds": (
            ("Haeundae Beach", "Travel > Nature > Beach", 35.1587, 129.1604),
            ("Gwangalli Beach", "Travel > Nature > Beach", 35.1532, 129.1186),
            ("Gamcheon Culture Village", "Culture > Heritage village", 35.0975, 129.0106),
            ("Jagalchi Fish Market", "Shopping > Market", 35.0966, 129.0306),
            ("Taejongdae", "Travel > Tourist attraction > Park", 35.0532, 129.0874),
        ),
    },
    "seoul": {
        "aliases": ("seoul", "서울"),
        "center": (37.5665, 126.9780),
        "queries": ("서울 강남", "서울 명동", "서울 홍대", "서울 인사동", "서울 경복궁"),
        "seeds": (
            ("Gyeongbokgung Palace", "Culture > Palace", 37.5796, 126.9770),
            ("Myeongdong Shopping Street", "Shopping > Shopping street", 37.5636, 126.9827),
            ("N Seoul Tower", "Travel > Tourist attraction > Observatory", 37.5512, 126.9882),
            ("Insadong", "Culture > Gallery street", 37.5743, 126.9855),
            ("Hongdae Street", "Nightlife > Club district", 37.5563, 126.9220),
        ),
    },
    "sokcho": {
        "aliases": ("sokcho", "속초"),
        "center": (38.2070, 128.5918),
        "queries": ("속초 설악산", "속초 해수욕장", "속초 시장", "속초 케이블카", "속초 낙산사"),
        "seeds": (
            ("Seoraksan National Park", "Travel > Nature > Mountain", 38.1195, 128.4656),
            ("Sokcho Beach", "Travel > Nature > Beach", 38.1906, 128.6016),
            ("Sokcho Tourist & Fishery Market", "Shopping > Market", 38.2048, 128.5910),
            ("Naksansa Temple", "Culture > Temple", 38.1246, 128.6290),
        ),
    },
    "gangneung": {
        "aliases": ("gangneung", "강릉"),
        "center": (37.7519, 128.8761),
        "queries": ("강릉 안목해변", "강릉 정동진", "강릉 오죽헌", "강릉 커피거리", "강릉 경포대"),
        "seeds": (
            ("Anmok Coffee Street", "Cafe > Coffee street", 37.7720, 128.9470),
            ("Jeongdongjin", "Travel > Tourist attraction > Beach", 37.6913, 129.0342),
            ("Ojukheon House", "Culture > Heritage", 37.7792, 128.8786),
            ("Gyeongpodae Pavilion", "Travel > Tourist attraction > Landmark", 37.7953, 128.8966),
        ),
    },
    "jeonju": {
        "aliases": ("jeonju", "전주"),
        "center": (35.8242, 127.1480),
        "queries": ("전주 한옥마을", "전주 비빔밥", "전주 객리단길", "전주 한지", "전주 풍남문"),
        "seeds": (
            ("Jeonju Hanok Village", "Culture > Heritage village", 35.8150, 127.1530),
            ("Pungnammun Gate", "Culture > Heritage", 35.8127, 127.1474),
            ("Gaekridan-gil", "Shopping > Shopping street", 35.8195, 127.1445),
            ("Jeonju Nambu Market", "Shopping > Traditional market", 35.8118, 127.1468),
        ),
    },
    "gyeongju": {
        "aliases": ("gyeongju", "경주"),
        "center": (35.8562, 129.2247),
        "queries": ("경주 불국사", "경주 석굴암", "경주 첨성대", "경주 안압지", "경주 대릉원"),
        "seeds": (
            ("Bulguksa Temple", "Culture > Temple", 35.7900, 129.3320),
            ("Seokguram Grotto", "Culture > Heritage", 35.7949, 129.3494),
            ("Cheomseongdae Observatory", "Travel > Tourist attraction > Landmark", 35.8347, 129.2190),
            ("Donggung Palace and Wolji Pond", "Culture > Palace", 35.8347, 129.2266),
            ("Daereungwon Tomb Complex", "Travel > Tourist attraction > Park", 35.8381, 129.2117),
        ),
    },
    "yeosu": {
        "aliases": ("yeosu", "여수"),
        "center": (34.7604, 127.6622),
        "queries": ("여수 밤바다", "여수 엑스포", "여수 오동도", "여수 향일암", "여수 케이블카"),
        "seeds": (
            ("Odongdo Island", "Travel > Nature > Island", 34.7437, 127.7666),
            ("Hyangiram Hermitage", "Culture > Temple", 34.5918, 127.8027),
            ("Yeosu Expo Ocean Park", "Travel > Tourist attraction > Park", 34.7536, 127.7477),
            ("Yeosu Maritime Cable Car", "Travel > Tourist attraction > Cable car", 34.7319, 127.7425),
        ),
    },
    "gapyeong": {
        "aliases": ("gapyeong", "가평"),
        "center": (37.8314, 127.5109),
        "queries": (),
        "seeds": (),
    },
}


def _normalise(region: str) -> str:
    return " ".join((region or "").lower().split())


def lookup_region(region: str) -> Optional[Dict[str, Any]]:
    key = _normalise(region)
    if not key:
        return None
    compact = key.replace(" ", "")
    for entry in REGIONS.values():
        aliases = entry["aliases"]
        if key in aliases or compact in aliases:
            return entry
    return None


def region_center(region: str) -> Coordinate:
    entry = lookup_region(region)
    if entry is None:
        return DEFAULT_CENTER
    lat, lng = entry["center"]
    return Coordinate(lat=lat, lng=lng)


def region_specific_queries(region: str) -> List[str]:
    entry = lookup_region(region)
    if entry is None or not entry["queries"]:
        return [f"{region} famous places", f"{region} popular spots"]
    return list(entry["queries"])


def region_seeds(region: str) -> List[Tuple[str, str, float, float]]:
    entry = lookup_region(region)
    if entry is None:
        return []
    return list(entry["seeds"])
