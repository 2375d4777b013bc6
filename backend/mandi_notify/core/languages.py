"""Supported languages for translation and the mandi terminology given to the model."""

LANGUAGE_NAMES: dict[str, str] = {
    "hi": "Hindi",
    "en": "English",
    "bn": "Bengali",
    "te": "Telugu",
    "mr": "Marathi",
    "ta": "Tamil",
    "gu": "Gujarati",
    "kn": "Kannada",
    "ml": "Malayalam",
    "or": "Odia",
    "pa": "Punjabi",
    "as": "Assamese",
    "ur": "Urdu",
    "sd": "Sindhi",
    "ne": "Nepali",
    "ks": "Kashmiri",
    "kok": "Konkani",
    "mni": "Manipuri",
    "sat": "Santali",
    "doi": "Dogri",
    "mai": "Maithili",
    "bho": "Bhojpuri",
}

# Pairs the model handles well; matched in either direction
HIGH_CONFIDENCE_PAIRS: frozenset[frozenset[str]] = frozenset(
    {
        frozenset({"en", "hi"}),
        frozenset({"en", "bn"}),
        frozenset({"hi", "ur"}),
    }
)

MANDI_TERMINOLOGY = """
Context: This is a translation for a mandi (wholesale market) platform in India.
Please use appropriate agricultural and trading terminology. Common terms include:
- Mandi = wholesale market
- Kisan = farmer
- Vyapari = trader/merchant
- Fasal = crop/harvest
- Bhav = price/rate
- Quintal = unit of measurement (100kg)
- Adat = commission
- Tolai = weighing
- Bori = sack/bag
- Kharif/Rabi = crop seasons
""".strip()


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


def is_supported(code: str) -> bool:
    return code in LANGUAGE_NAMES
