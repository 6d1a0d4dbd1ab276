"""
Iowa county centroids.

Center coordinates for all 99 Iowa counties, used as the fallback location
when an auction's address cannot be geocoded. The table is built once at
import time and never mutated, so concurrent readers need no locking.
"""

import re
from types import MappingProxyType
from typing import NamedTuple


class CountyCentroid(NamedTuple):
    county: str
    latitude: float
    longitude: float


_COUNTY_SUFFIX = re.compile(r"\s+county\s*$", re.IGNORECASE)

_CENTROID_ROWS = (
    ("Adair", 41.3308, -94.4708),
    ("Adams", 41.0294, -94.6989),
    ("Allamakee", 43.2841, -91.3780),
    ("Appanoose", 40.7428, -92.8683),
    ("Audubon", 41.6844, -94.9056),
    ("Benton", 42.0797, -92.0653),
    ("Black Hawk", 42.4697, -92.3096),
    ("Boone", 42.0364, -93.9300),
    ("Bremer", 42.7747, -92.3177),
    ("Buchanan", 42.4703, -91.8378),
    ("Buena Vista", 42.7319, -95.1517),
    ("Butler", 42.7244, -92.7944),
    ("Calhoun", 42.3797, -94.6331),
    ("Carroll", 42.0464, -94.8561),
    ("Cass", 41.3108, -94.9444),
    ("Cedar", 41.7653, -91.1289),
    ("Cerro Gordo", 43.0778, -93.2556),
    ("Cherokee", 42.7447, -95.6378),
    ("Chickasaw", 43.0650, -92.3189),
    ("Clarke", 40.9939, -93.7806),
    ("Clay", 43.0844, -95.1511),
    ("Clayton", 42.8453, -91.3117),
    ("Clinton", 41.9311, -90.5331),
    ("Crawford", 42.0300, -95.3800),
    ("Dallas", 41.6847, -94.0500),
    ("Davis", 40.7411, -92.4067),
    ("Decatur", 40.7389, -93.7856),
    ("Delaware", 42.4711, -91.3639),
    ("Des Moines", 40.8206, -91.1050),
    ("Dickinson", 43.3881, -95.1492),
    ("Dubuque", 42.4511, -90.9350),
    ("Emmet", 43.3997, -94.6739),
    ("Fayette", 42.8408, -91.8022),
    ("Floyd", 43.0664, -92.7928),
    ("Franklin", 42.7267, -93.2617),
    ("Fremont", 40.7356, -95.6619),
    ("Greene", 42.0358, -94.3881),
    ("Grundy", 42.4000, -92.7928),
    ("Guthrie", 41.6800, -94.5025),
    ("Hamilton", 42.3958, -93.7378),
    ("Hancock", 43.0775, -93.7336),
    ("Hardin", 42.3206, -93.2550),
    ("Harrison", 41.6864, -95.8178),
    ("Henry", 41.0158, -91.5656),
    ("Howard", 43.3561, -92.3133),
    ("Humboldt", 42.7328, -94.1728),
    ("Ida", 42.3444, -95.6344),
    ("Iowa", 41.6731, -92.0611),
    ("Jackson", 42.1428, -90.5833),
    ("Jasper", 41.6792, -93.0272),
    ("Jefferson", 41.0306, -91.9550),
    ("Johnson", 41.6611, -91.5986),
    ("Jones", 42.1411, -91.1200),
    ("Keokuk", 41.3119, -92.1828),
    ("Kossuth", 43.2069, -94.2133),
    ("Lee", 40.6236, -91.5489),
    ("Linn", 42.0783, -91.5989),
    ("Louisa", 41.2247, -91.2656),
    ("Lucas", 41.0294, -93.3072),
    ("Lyon", 43.3875, -96.2106),
    ("Madison", 41.3281, -94.0139),
    ("Mahaska", 41.3294, -92.6444),
    ("Marion", 41.3144, -93.1133),
    ("Marshall", 42.0397, -92.9133),
    ("Mills", 41.0258, -95.6344),
    ("Mitchell", 43.3464, -92.7933),
    ("Monona", 42.0297, -96.0294),
    ("Monroe", 41.0208, -92.8683),
    ("Montgomery", 41.0281, -95.1517),
    ("Muscatine", 41.4942, -91.1033),
    ("O'Brien", 43.0883, -95.6289),
    ("Osceola", 43.3894, -95.6306),
    ("Page", 40.7353, -95.1708),
    ("Palo Alto", 43.0758, -94.6753),
    ("Plymouth", 42.7317, -96.1914),
    ("Pocahontas", 42.7342, -94.6711),
    ("Polk", 41.6736, -93.5656),
    ("Pottawattamie", 41.3136, -95.6378),
    ("Poweshiek", 41.6842, -92.5333),
    ("Ringgold", 40.7347, -94.2528),
    ("Sac", 42.3781, -95.1478),
    ("Scott", 41.6106, -90.6856),
    ("Shelby", 41.5139, -95.3800),
    ("Sioux", 43.0900, -96.1722),
    ("Story", 42.0378, -93.4667),
    ("Tama", 42.0756, -92.5767),
    ("Taylor", 40.7350, -94.7056),
    ("Union", 41.0275, -94.2444),
    ("Van Buren", 40.7453, -92.0306),
    ("Wapello", 41.0153, -92.4022),
    ("Warren", 41.3247, -93.5656),
    ("Washington", 41.3222, -91.7256),
    ("Wayne", 40.7450, -93.3111),
    ("Webster", 42.4261, -94.1733),
    ("Winnebago", 43.3781, -93.7283),
    ("Winneshiek", 43.2819, -91.8606),
    ("Woodbury", 42.4433, -96.0833),
    ("Worth", 43.3783, -93.2583),
    ("Wright", 42.7281, -93.7400),
)

IOWA_COUNTY_CENTROIDS: MappingProxyType[str, CountyCentroid] = MappingProxyType(
    {name: CountyCentroid(name, lat, lng) for name, lat, lng in _CENTROID_ROWS}
)

# Case-insensitive index over the same records.
_BY_LOWER_NAME: MappingProxyType[str, CountyCentroid] = MappingProxyType(
    {name.lower(): centroid for name, centroid in IOWA_COUNTY_CENTROIDS.items()}
)


def normalize_county_name(name: str | None) -> str:
    """Strip a trailing "County" (any case) and surrounding whitespace."""
    if not name:
        return ""
    return _COUNTY_SUFFIX.sub("", name.strip()).strip()


def county_centroid(name: str | None) -> CountyCentroid | None:
    """
    Look up a county centroid.

    "Story County", "story" and " Story " all resolve to Story County.
    Unknown names return None.
    """
    normalized = normalize_county_name(name)
    if not normalized:
        return None
    return _BY_LOWER_NAME.get(normalized.lower())


def all_iowa_counties() -> list[str]:
    return sorted(IOWA_COUNTY_CENTROIDS)
