import logging

from withdrawal_tracker.models.enums import Region

logger = logging.getLogger(__name__)

REGIONAL_TEAMS = {
    Region.AFRICA: {
        "name": "Africa Operations",
        "code": "AFR",
        "description": "Handles requests from African countries",
    },
    Region.ASIA: {
        "name": "Asia Operations",
        "code": "ASA",
        "description": "Handles requests from Asian countries",
    },
    Region.EUROPE_LATIN_AMERICA: {
        "name": "Europe/Latin America Operations",
        "code": "ELA",
        "description": "Handles requests from European and Latin American countries",
    },
}

AFRICA_COUNTRIES = (
    "algeria",
    "angola",
    "benin",
    "botswana",
    "burkina-faso",
    "burundi",
    "cabo-verde",
    "cameroon",
    "central-african-republic",
    "chad",
    "comoros",
    "congo",
    "democratic-republic-of-congo",
    "djibouti",
    "egypt",
    "equatorial-guinea",
    "eritrea",
    "eswatini",
    "ethiopia",
    "gabon",
    "gambia",
    "ghana",
    "guinea",
    "guinea-bissau",
    "ivory-coast",
    "kenya",
    "lesotho",
    "liberia",
    "libya",
    "madagascar",
    "malawi",
    "mali",
    "mauritania",
    "mauritius",
    "morocco",
    "mozambique",
    "namibia",
    "niger",
    "nigeria",
    "rwanda",
    "sao-tome-and-principe",
    "senegal",
    "seychelles",
    "sierra-leone",
    "somalia",
    "south-africa",
    "south-sudan",
    "sudan",
    "tanzania",
    "togo",
    "tunisia",
    "uganda",
    "zambia",
    "zimbabwe",
)

ASIA_COUNTRIES = (
    "afghanistan",
    "armenia",
    "azerbaijan",
    "bahrain",
    "bangladesh",
    "bhutan",
    "brunei",
    "cambodia",
    "china",
    "cyprus",
    "georgia",
    "india",
    "indonesia",
    "iran",
    "iraq",
    "israel",
    "japan",
    "jordan",
    "kazakhstan",
    "kuwait",
    "kyrgyzstan",
    "laos",
    "lebanon",
    "malaysia",
    "maldives",
    "mongolia",
    "myanmar",
    "nepal",
    "north-korea",
    "oman",
    "pakistan",
    "palestine",
    "philippines",
    "qatar",
    "saudi-arabia",
    "singapore",
    "south-korea",
    "sri-lanka",
    "syria",
    "tajikistan",
    "thailand",
    "timor-leste",
    "turkey",
    "turkmenistan",
    "united-arab-emirates",
    "uzbekistan",
    "vietnam",
    "yemen",
)

EUROPE_LATIN_AMERICA_COUNTRIES = (
    "albania",
    "andorra",
    "argentina",
    "austria",
    "belarus",
    "belgium",
    "bolivia",
    "bosnia-and-herzegovina",
    "brazil",
    "bulgaria",
    "chile",
    "colombia",
    "costa-rica",
    "croatia",
    "czech-republic",
    "denmark",
    "dominican-republic",
    "ecuador",
    "el-salvador",
    "estonia",
    "finland",
    "france",
    "germany",
    "greece",
    "guatemala",
    "honduras",
    "hungary",
    "iceland",
    "ireland",
    "italy",
    "latvia",
    "liechtenstein",
    "lithuania",
    "luxembourg",
    "malta",
    "mexico",
    "moldova",
    "monaco",
    "montenegro",
    "netherlands",
    "nicaragua",
    "north-macedonia",
    "norway",
    "panama",
    "paraguay",
    "peru",
    "poland",
    "portugal",
    "romania",
    "russia",
    "san-marino",
    "serbia",
    "slovakia",
    "slovenia",
    "spain",
    "sweden",
    "switzerland",
    "ukraine",
    "united-kingdom",
    "uruguay",
    "vatican-city",
    "venezuela",
)

COUNTRY_REGION_MAPPING = {
    **{country: Region.AFRICA for country in AFRICA_COUNTRIES},
    **{country: Region.ASIA for country in ASIA_COUNTRIES},
    **{country: Region.EUROPE_LATIN_AMERICA for country in EUROPE_LATIN_AMERICA_COUNTRIES},
}


def normalize_country(country):
    """Canonical key for a country name: lower-case, trimmed, hyphen separated.

    ``" South Africa "``, ``"south_africa"`` and ``"south-africa"`` all map to
    ``"south-africa"``.
    """
    if not country or not isinstance(country, str):
        return None
    key = country.strip().lower()
    key = "-".join(key.replace("_", " ").split())
    return key or None


def region_for(country):
    """Return the operational region for ``country`` or ``None`` if unsupported."""
    key = normalize_country(country)
    if key is None:
        return None
    region = COUNTRY_REGION_MAPPING.get(key)
    if region is None:
        logger.debug("No region mapping for country %r", country)
    return region


def regional_team_for(country):
    region = region_for(country)
    if not region:
        return None
    return REGIONAL_TEAMS[region]


def countries_for_region(region):
    return sorted(c for c, r in COUNTRY_REGION_MAPPING.items() if r == region)


def is_country_supported(country):
    return region_for(country) is not None
